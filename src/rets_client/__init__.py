# RETS Client
# File: __init__.py
# Version: v2

"""Top-level package for the RETS client."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .client import RetsClient
from .config import RetsConfig
from .errors import (
    DecodeError,
    FeatureUnsupported,
    InvalidArgument,
    InvalidState,
    MalformedContentType,
    MalformedReply,
    ProtocolError,
    RetsError,
    TransportError,
)
from .update import DelegateAuth

__all__ = [
    "__version__",
    "DecodeError",
    "DelegateAuth",
    "FeatureUnsupported",
    "InvalidArgument",
    "InvalidState",
    "MalformedContentType",
    "MalformedReply",
    "ProtocolError",
    "RetsClient",
    "RetsConfig",
    "RetsError",
    "TransportError",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to a reasonable default when running from source without an
    installed distribution.
    """
    try:
        return version("rets-client")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()
