"""Block dispatch table — block type → rendering rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .errors import DuplicateRuleError, UnknownBlockTypeError

logger = logging.getLogger(__name__)

# (block, ctx) → (code, order) for value rules; code or None for statement rules.
RuleHandler = Callable[..., Any]


class RuleKind(str, Enum):
    VALUE = "value"
    STATEMENT = "statement"


@dataclass(frozen=True)
class Rule:
    kind: RuleKind
    handler: RuleHandler
    # The rule injects statement prefix / suffix itself.
    suppress_prefix_suffix: bool = False

    @property
    def is_value(self) -> bool:
        return self.kind == RuleKind.VALUE


class RuleTable:
    """Per-language mapping from block type to :class:`Rule`.

    Registering the same type twice is an error; sharing a rule between two
    types goes through :meth:`alias`.
    """

    def __init__(self, language: str):
        self.language = language
        self._rules: dict[str, Rule] = {}
        self._aliases: dict[str, str] = {}

    def register(self, block_type: str, rule: Rule) -> None:
        if block_type in self._rules:
            raise DuplicateRuleError(
                f"{self.language}: rule for '{block_type}' is already registered"
            )
        self._rules[block_type] = rule

    def value(self, block_type: str, handler: RuleHandler, *, suppress_prefix_suffix: bool = False) -> None:
        self.register(block_type, Rule(RuleKind.VALUE, handler, suppress_prefix_suffix))

    def statement(self, block_type: str, handler: RuleHandler, *, suppress_prefix_suffix: bool = False) -> None:
        self.register(block_type, Rule(RuleKind.STATEMENT, handler, suppress_prefix_suffix))

    def alias(self, block_type: str, target: str) -> None:
        """Make *block_type* render exactly like *target*."""
        self.register(block_type, self.lookup(target))
        self._aliases[block_type] = target

    def lookup(self, block_type: str) -> Rule:
        rule = self._rules.get(block_type)
        if rule is None:
            raise UnknownBlockTypeError(self.language, block_type)
        return rule

    def alias_target(self, block_type: str) -> str | None:
        return self._aliases.get(block_type)

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def block_types(self) -> list[str]:
        return sorted(self._rules)
