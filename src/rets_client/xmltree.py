# RETS Client
# File: xmltree.py
# Version: v1

"""Tiny XML-to-tree adapter.

RETS replies are consumed as a tree of nodes, each exposing its attributes,
its children grouped by tag, and its own text. Namespaces are not used by
RETS, so tags are kept as-is.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .errors import MalformedReply


@dataclass
class XmlNode:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: Dict[str, List["XmlNode"]] = field(default_factory=dict)
    text: str = ""

    def all(self, tag: str) -> List["XmlNode"]:
        return self.children.get(tag, [])

    def first(self, tag: str) -> Optional["XmlNode"]:
        nodes = self.children.get(tag)
        return nodes[0] if nodes else None


def _convert(elem: ET.Element) -> XmlNode:
    node = XmlNode(tag=elem.tag, attributes=dict(elem.attrib), text=elem.text or "")
    for child in elem:
        node.children.setdefault(child.tag, []).append(_convert(child))
    return node


def parse(xml_text: Union[str, bytes]) -> XmlNode:
    """Parse XML text into an :class:`XmlNode` tree rooted at the document element."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise MalformedReply(f"Unparsable RETS reply: {exc}") from exc
    return _convert(root)
