#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Type hints used internally by this package.

Modules import everything from here with "from .internal_types import *".
"""

from __future__ import annotations

from typing import (
    Any,
    AsyncContextManager,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    TypeVar,
    Union,
    cast,
)

from types import TracebackType

from typing_extensions import Self

Jsonable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A type that can be serialized to JSON."""

JsonableDict = Dict[str, Jsonable]
"""A dict that can be serialized to JSON."""

HostAndPort = Tuple[str, int]
"""A (host, port) socket address."""

NameValuePairs = Union[Mapping[str, str], Iterable[Tuple[str, str]]]
"""An ordered collection of name/value query parameters."""

__all__ = [
    'Any', 'AsyncContextManager', 'AsyncIterable', 'AsyncIterator', 'Awaitable',
    'Callable', 'Dict', 'Iterable', 'Iterator', 'List', 'Mapping', 'MutableMapping',
    'Optional', 'Sequence', 'Set', 'Tuple', 'Type', 'TypeVar', 'Union', 'cast',
    'TracebackType', 'Self',
    'Jsonable', 'JsonableDict', 'HostAndPort', 'NameValuePairs',
]
