#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Bounded text fields, and the extractor that fills them from ECP XML documents.

Every text field of a record has a fixed capacity inherited from the protocol's
buffer sizes. A capacity counts a terminator, so a field with capacity N holds at
most N-1 characters. Truncation happens at exactly two boundaries: when a record is
constructed, and when a value is copied out of an XML node by fill_from_xml(). Any
field whose source is missing is the empty string.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from xml.etree.ElementTree import Element

from .internal_types import *

MAX_LENGTH_METADATA_KEY = 'roku_ecp_max_length'

class ExtractMode(Enum):
    """Where fill_from_xml() looks for the source fields of a node."""
    ATTRIBUTE = "attribute"
    CHILD_ELEMENT = "child-element"

class FieldMapping:
    """Maps one attribute or child element name onto a destination field of a given capacity."""

    source_name: str
    """The XML attribute or child element name."""

    dest_name: str
    """The key under which the extracted text is returned."""

    capacity: int
    """The destination capacity, including the terminator. At most capacity-1 characters are kept."""

    def __init__(self, source_name: str, dest_name: str, capacity: int):
        if capacity < 1:
            raise ValueError(f"Field capacity must be at least 1, got {capacity} for {source_name!r}")
        self.source_name = source_name
        self.dest_name = dest_name
        self.capacity = capacity

    def __str__(self) -> str:
        return f"FieldMapping({self.source_name!r} -> {self.dest_name!r}, capacity={self.capacity})"

    def __repr__(self) -> str:
        return str(self)

def truncate_text(value: Optional[str], capacity: int) -> str:
    """Returns value truncated to at most capacity-1 characters. None becomes ''."""
    if capacity < 1:
        raise ValueError(f"Field capacity must be at least 1, got {capacity}")
    if value is None:
        return ''
    return value[:capacity - 1]

def element_text(element: Element) -> str:
    """Returns the entire text content of an element, including the text of all descendants."""
    return ''.join(element.itertext())

def fill_from_xml(node: Element, mode: ExtractMode, mappings: Sequence[FieldMapping]) -> Dict[str, str]:
    """Extracts the mapped fields of an XML node.

    Every destination starts out empty. In ATTRIBUTE mode, each mapping is filled from
    the node's attribute of the same name. In CHILD_ELEMENT mode, the node's children are
    scanned in document order and each child whose tag matches a mapping fills that
    mapping with its text content; if a tag repeats, the last occurrence wins.

    Returns a dict from each mapping's dest_name to the extracted, truncated text.
    """
    result: Dict[str, str] = { mapping.dest_name: '' for mapping in mappings }
    if mode == ExtractMode.ATTRIBUTE:
        for mapping in mappings:
            value = node.get(mapping.source_name)
            if value is not None:
                result[mapping.dest_name] = truncate_text(value, mapping.capacity)
    else:
        for child in node:
            for mapping in mappings:
                if child.tag == mapping.source_name:
                    result[mapping.dest_name] = truncate_text(element_text(child), mapping.capacity)
                    break
    return result

def bounded_field(max_length: int, default: str='') -> Any:
    """Declares a dataclass text field that holds at most max_length characters."""
    return dataclasses.field(default=default, metadata={MAX_LENGTH_METADATA_KEY: max_length})

def max_length_of(record_type: Type[Any], field_name: str) -> int:
    """Returns the declared maximum length of a bounded text field of a record class."""
    for f in dataclasses.fields(record_type):
        if f.name == field_name:
            if MAX_LENGTH_METADATA_KEY not in f.metadata:
                raise KeyError(f"{record_type.__name__}.{field_name} is not a bounded text field")
            return f.metadata[MAX_LENGTH_METADATA_KEY]
    raise KeyError(f"{record_type.__name__} has no field {field_name!r}")

def capacity_of(record_type: Type[Any], field_name: str) -> int:
    """Returns the capacity (max length plus terminator) of a bounded text field of a record class."""
    return max_length_of(record_type, field_name) + 1

def record_mapping(record_type: Type[Any], source_name: str, field_name: str) -> FieldMapping:
    """Returns a FieldMapping that fills a record's bounded text field from source_name."""
    return FieldMapping(source_name, field_name, capacity_of(record_type, field_name))

class BoundedRecord:
    """Mixin for dataclasses whose bounded text fields are truncated on construction.

    Works with frozen dataclasses.
    """

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            max_length = f.metadata.get(MAX_LENGTH_METADATA_KEY)
            if max_length is not None:
                value = getattr(self, f.name)
                if value is None:
                    value = ''
                if not isinstance(value, str):
                    raise TypeError(f"{type(self).__name__}.{f.name} must be a str, got {type(value).__name__}")
                object.__setattr__(self, f.name, value[:max_length])
