"""
Catalog of weak learners by identifier.

The product weak learner picks its prototype terms from this catalog, and
reads them back by identifier when loading a fitted model.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from ..exceptions import InvalidArgument

_catalog: dict[str, tuple[Callable, str]] = {}


def register(id: str, factory: Callable, description: str = "") -> None:
    """Register ``factory`` (called without arguments) under ``id``."""
    if id in _catalog:
        raise InvalidArgument(f"weak learner <{id}> is already registered")
    _catalog[id] = (factory, description)


def get(id: str):
    """Fresh, unfitted weak learner registered under ``id``."""
    try:
        factory, _ = _catalog[id]
    except KeyError:
        raise InvalidArgument(f"unknown weak learner <{id}>, expecting one of {ids()}") from None
    return factory()


def ids(pattern: Optional[str] = None) -> list[str]:
    """Registered identifiers, optionally filtered by a regular expression."""
    regex = None if pattern is None else re.compile(pattern)
    return sorted(id for id in _catalog if regex is None or regex.search(id))


def description(id: str) -> str:
    if id not in _catalog:
        raise InvalidArgument(f"unknown weak learner <{id}>")
    return _catalog[id][1]
