# RETS Client
# File: client.py
# Version: v8
"""High-level RETS client.

Implements:

- login() / logout()
- get_metadata() and the typed metadata helpers (system, resources, class,
  table, lookups, lookup types, foreign keys, object metadata)
- search() / query()
- get_object() / get_photos()
- update() (optionally delegated)

Every operation returns an :class:`~rets_client.models.Outcome` and also
delivers it to the optional ``callback`` and to the listeners registered with
:meth:`RetsClient.on` for ``<event>.success`` / ``<event>.failure``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from .auth import login as auth_login, logout as auth_logout
from .config import RetsConfig
from .dispatch import Callback, EventEmitter, dispatch
from .errors import FeatureUnsupported, InvalidArgument, InvalidState, RetsError
from .metadata import MetadataModule
from .models import LoginContext, Outcome
from .objects import ObjectModule
from .search import SearchModule
from .session import BoundSession, derive_sessions
from .update import DelegateAuth, UpdateModule

logger = logging.getLogger(__name__)


class RetsClient(EventEmitter):
    """Stateful RETS client bound to one server and one login session."""

    def __init__(
        self,
        config: Optional[RetsConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self.config = config or RetsConfig.from_env()
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

        self.context: Optional[LoginContext] = None
        self.sessions: Dict[str, BoundSession] = {}
        self._reset_modules()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset_modules(self) -> None:
        self.metadata_module = MetadataModule(self.sessions.get("GetMetadata"))
        self.search_module = SearchModule(self.sessions.get("Search"))
        self.object_module = ObjectModule(self.sessions.get("GetObject"))
        self.update_module = UpdateModule(
            self.sessions.get("Update"), delimiter=self.config.update_delimiter
        )

    def _digest_auth(self) -> Optional[httpx.DigestAuth]:
        # Capability URLs may challenge again after login.
        if not self.config.username:
            return None
        return httpx.DigestAuth(self.config.username, self.config.password or "")

    def _http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=float(self.config.timeout_seconds),
                verify=self.config.verify_tls,
                transport=self._transport,
                auth=self._digest_auth(),
            )
        return self._http

    async def _run(
        self,
        event: str,
        operation: Callable[[], Awaitable[Any]],
        callback: Optional[Callback],
    ) -> Outcome:
        try:
            outcome = Outcome(event=event, data=await operation())
        except RetsError as exc:
            outcome = Outcome(event=event, error=exc)
        return await dispatch(outcome, callback, self)

    @property
    def logged_in(self) -> bool:
        return self.context is not None

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "RetsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def login(self, callback: Optional[Callback] = None) -> Outcome:
        """Log in and derive the per-capability sessions.

        Events: ``connection.success(context)`` / ``connection.failure(error)``.
        """

        async def _login() -> LoginContext:
            if not self.config.login_url or not self.config.username:
                raise InvalidArgument(
                    "RETS_LOGIN_URL and RETS_USERNAME must be set before login()."
                )

            credentials = self.config.credentials()
            http = self._http_client()
            context = await auth_login(http, credentials, self.config.login_url)

            self.context = context
            self.sessions = derive_sessions(context, http, credentials)
            self._reset_modules()
            return context

        return await self._run("connection", _login, callback)

    async def logout(self, callback: Optional[Callback] = None) -> Outcome:
        """Log out once; the client is invalidated afterwards.

        Events: ``logout.success`` / ``logout.failure(error)``.
        """

        async def _logout() -> bool:
            session = self.sessions.get("Logout")
            if not self.logged_in or session is None:
                raise InvalidState("Not logged in; invoke login first.")

            try:
                return await auth_logout(session)
            finally:
                self.context = None
                self.sessions = {}
                self._reset_modules()
                await self.aclose()

        return await self._run("logout", _logout, callback)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def get_metadata(
        self, type: str, id: str, format: str, callback: Optional[Callback] = None
    ) -> Outcome:
        return await self._run(
            "metadata",
            lambda: self.metadata_module.get_metadata(type, id, format),
            callback,
        )

    async def get_system(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run("metadata.system", self.metadata_module.get_system, callback)

    async def get_resources(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run(
            "metadata.resources", self.metadata_module.get_resources, callback
        )

    async def get_all_foreign_keys(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run(
            "metadata.all.foreignkeys", self.metadata_module.get_all_foreign_keys, callback
        )

    async def get_foreign_keys(
        self, resource_type: str, callback: Optional[Callback] = None
    ) -> Outcome:
        return await self._run(
            "metadata.foreignkeys",
            lambda: self.metadata_module.get_foreign_keys(resource_type),
            callback,
        )

    async def get_all_class(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run("metadata.all.class", self.metadata_module.get_all_class, callback)

    async def get_class(
        self, resource_type: str, callback: Optional[Callback] = None
    ) -> Outcome:
        return await self._run(
            "metadata.class",
            lambda: self.metadata_module.get_class(resource_type),
            callback,
        )

    async def get_all_table(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run("metadata.all.table", self.metadata_module.get_all_table, callback)

    async def get_table(
        self,
        resource_type: str,
        class_type: Optional[str] = None,
        callback: Optional[Callback] = None,
    ) -> Outcome:
        return await self._run(
            "metadata.table",
            lambda: self.metadata_module.get_table(resource_type, class_type),
            callback,
        )

    async def get_all_lookups(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run(
            "metadata.all.lookups", self.metadata_module.get_all_lookups, callback
        )

    async def get_lookups(
        self, resource_type: str, callback: Optional[Callback] = None
    ) -> Outcome:
        return await self._run(
            "metadata.lookups",
            lambda: self.metadata_module.get_lookups(resource_type),
            callback,
        )

    async def get_all_lookup_types(self, callback: Optional[Callback] = None) -> Outcome:
        return await self._run(
            "metadata.all.lookupTypes", self.metadata_module.get_all_lookup_types, callback
        )

    async def get_lookup_types(
        self,
        resource_type: str,
        lookup_type: Optional[str] = None,
        callback: Optional[Callback] = None,
    ) -> Outcome:
        return await self._run(
            "metadata.lookupTypes",
            lambda: self.metadata_module.get_lookup_types(resource_type, lookup_type),
            callback,
        )

    async def get_object_meta(
        self, resource_type: str, callback: Optional[Callback] = None
    ) -> Outcome:
        return await self._run(
            "metadata.object",
            lambda: self.metadata_module.get_object_metadata(resource_type),
            callback,
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self, options: Mapping[str, Any], callback: Optional[Callback] = None
    ) -> Outcome:
        """Raw Search; the outcome data is the XML reply text."""
        return await self._run(
            "search", lambda: self.search_module.search(options), callback
        )

    async def query(
        self,
        resource_type: str,
        class_type: str,
        query: str,
        limit: Optional[int] = None,
        callback: Optional[Callback] = None,
    ) -> Outcome:
        """Targeted Search decoded into a :class:`~rets_client.models.SearchResult`."""
        return await self._run(
            "query",
            lambda: self.search_module.query(resource_type, class_type, query, limit),
            callback,
        )

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    async def get_object(
        self,
        resource_type: str,
        object_type: str,
        object_id: str,
        callback: Optional[Callback] = None,
    ) -> Outcome:
        return await self._run(
            "object",
            lambda: self.object_module.get_object(resource_type, object_type, object_id),
            callback,
        )

    async def get_photos(
        self,
        resource_type: str,
        photo_type: str,
        listing_id: str,
        callback: Optional[Callback] = None,
    ) -> Outcome:
        return await self._run(
            "photos",
            lambda: self.object_module.get_photos(resource_type, photo_type, listing_id),
            callback,
        )

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(
        self,
        resource_type: str,
        class_type: str,
        fields: Mapping[str, object],
        auth: Optional[DelegateAuth] = None,
        callback: Optional[Callback] = None,
        update_type: str = "Change",
    ) -> Outcome:
        """Update a record, optionally on behalf of a delegate.

        Events: ``update.success(UpdateResult)`` / ``update.failure(error)``.
        """

        async def _update() -> Any:
            if self.logged_in and "Update" not in self.sessions:
                raise FeatureUnsupported("Update not supported")
            return await self.update_module.update(
                resource_type, class_type, fields, auth, update_type
            )

        return await self._run("update", _update, callback)
