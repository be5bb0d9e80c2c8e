"""
Structured response decoding.

The service answers stat/du/dir with small XML documents such as::

    <?xml version="1.0" encoding="ISO-8859-1"?>
    <stat directory="/12345/images">
      <file type="file" name="cat.png" size="1024" md5="..." mtime="1700000000"/>
    </stat>

which decode to::

    {"stat": {"attribs": {"directory": "/12345/images"},
              "file": [{"type": "file", "name": "cat.png", ...}]}}

Only the root element's own attributes and the attribute sets of its direct
children are kept. Text content and grandchildren are dropped.
"""
from __future__ import annotations

from typing import Any, Dict, List, Union
from xml.etree.ElementTree import Element, ParseError as XMLParseError, fromstring

from .errors import ParseError

__all__ = ["parse_structured_response"]


def _element_to_mapping(element: Element) -> Dict[str, Any]:
    node: Dict[str, Any] = {}
    if element.attrib:
        node["attribs"] = dict(element.attrib)

    children: Dict[str, List[Dict[str, str]]] = {}
    for child in element:
        children.setdefault(child.tag, []).append(dict(child.attrib))
    # A child tagged "attribs" replaces the root attributes
    node.update(children)
    return node


def parse_structured_response(body: Union[str, bytes]) -> Dict[str, Any]:
    """
    Decode an XML response body into a nested mapping.

    Args:
        body: Raw response body

    Returns:
        {root_tag: {"attribs": {...}, child_tag: [attribs, ...], ...}}

    Raises:
        ParseError: If the body is not well-formed XML
    """
    try:
        root = fromstring(body)
    except XMLParseError as e:
        raise ParseError(f"Malformed XML response: {e}") from e

    return {root.tag: _element_to_mapping(root)}
