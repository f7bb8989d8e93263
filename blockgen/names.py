"""Name resolution — logical names to collision-free target identifiers."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")


class NameType(str, Enum):
    VARIABLE = "VARIABLE"
    PROCEDURE = "PROCEDURE"
    DEVELOPER_VARIABLE = "DEVELOPER_VARIABLE"


_PREFIXED_TYPES = frozenset({NameType.VARIABLE, NameType.DEVELOPER_VARIABLE})


class NameDatabase:
    """Allocates identifiers for one generation pass.

    Logical names are matched case-insensitively per :class:`NameType`, so
    repeated lookups of the same logical name return the same identifier.
    All types share one pool of handed-out identifiers, which keeps a helper
    function from shadowing a user variable and vice versa.

    Identifiers of a type in *case_insensitive_types* must also differ from
    every reserved word and taken identifier when lowercased, for targets
    whose function names ignore case.
    """

    def __init__(
        self,
        reserved_words: Iterable[str] = (),
        variable_prefix: str = "",
        case_insensitive_types: Iterable[NameType] = (),
    ):
        self._reserved = frozenset(reserved_words)
        self._reserved_lower = frozenset(word.lower() for word in self._reserved)
        self._variable_prefix = variable_prefix
        self._case_insensitive = frozenset(case_insensitive_types)
        self._db: dict[NameType, dict[str, str]] = {}
        self._taken: set[str] = set()
        self._taken_lower: set[str] = set()

    def reset(self) -> None:
        self._db = {}
        self._taken = set()
        self._taken_lower = set()

    def _prefix(self, name_type: NameType) -> str:
        return self._variable_prefix if name_type in _PREFIXED_TYPES else ""

    def get_name(self, name: str, name_type: NameType) -> str:
        key = name.lower()
        type_db = self._db.setdefault(name_type, {})
        if key in type_db:
            return self._prefix(name_type) + type_db[key]
        distinct = self._allocate(name, name_type)
        type_db[key] = distinct
        logger.debug("Resolved %s %r -> %r", name_type.value, name, distinct)
        return self._prefix(name_type) + distinct

    def get_distinct_name(self, name: str, name_type: NameType) -> str:
        """A fresh identifier that is never returned again in this pass."""
        return self._prefix(name_type) + self._allocate(name, name_type)

    def populate(self, names: Iterable[str], name_type: NameType) -> None:
        for name in names:
            self.get_name(name, name_type)

    def _clashes(self, candidate: str, name_type: NameType) -> bool:
        if candidate in self._taken or candidate in self._reserved:
            return True
        if name_type in self._case_insensitive:
            lowered = candidate.lower()
            return lowered in self._taken_lower or lowered in self._reserved_lower
        return False

    def _allocate(self, name: str, name_type: NameType) -> str:
        base = safe_name(name)
        candidate = base
        suffix = 1
        while self._clashes(candidate, name_type):
            suffix += 1
            candidate = f"{base}{suffix}"
        self._taken.add(candidate)
        self._taken_lower.add(candidate.lower())
        return candidate


def safe_name(name: str) -> str:
    """Coerce *name* into a lexically valid identifier."""
    if not name:
        return "unnamed"
    cleaned = _UNSAFE_CHARS.sub("_", name.replace(" ", "_"))
    if cleaned[0].isdigit():
        cleaned = "my_" + cleaned
    return cleaned
