"""Closed operator enums for block dropdown fields.

Each enum member's value is the field value stored on the block. ``parse``
turns a raw field value into a member or raises
:class:`~blockgen.errors.UnsupportedOperationError`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, TypeVar

from .errors import UnsupportedOperationError

E = TypeVar("E", bound="BlockOp")


class BlockOp(str, Enum):
    """Base for dropdown enums; subclasses only list members."""

    @classmethod
    def parse(cls: type[E], value: Any) -> E:
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedOperationError(cls.__name__, value) from None


class CompareOp(BlockOp):
    EQ = "EQ"
    NEQ = "NEQ"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"


class LogicOp(BlockOp):
    AND = "AND"
    OR = "OR"


class ArithmeticOp(BlockOp):
    ADD = "ADD"
    MINUS = "MINUS"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    POWER = "POWER"


class SingleOp(BlockOp):
    ROOT = "ROOT"
    ABS = "ABS"
    NEG = "NEG"
    LN = "LN"
    LOG10 = "LOG10"
    EXP = "EXP"
    POW10 = "POW10"
    ROUND = "ROUND"
    ROUNDUP = "ROUNDUP"
    ROUNDDOWN = "ROUNDDOWN"
    SIN = "SIN"
    COS = "COS"
    TAN = "TAN"
    ASIN = "ASIN"
    ACOS = "ACOS"
    ATAN = "ATAN"


class MathConstant(BlockOp):
    PI = "PI"
    E = "E"
    GOLDEN_RATIO = "GOLDEN_RATIO"
    SQRT2 = "SQRT2"
    SQRT1_2 = "SQRT1_2"
    INFINITY = "INFINITY"


class NumberProperty(BlockOp):
    EVEN = "EVEN"
    ODD = "ODD"
    PRIME = "PRIME"
    WHOLE = "WHOLE"
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    DIVISIBLE_BY = "DIVISIBLE_BY"


class ListOp(BlockOp):
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"
    AVERAGE = "AVERAGE"
    MEDIAN = "MEDIAN"
    MODE = "MODE"
    STD_DEV = "STD_DEV"
    RANDOM = "RANDOM"


class LoopMode(BlockOp):
    WHILE = "WHILE"
    UNTIL = "UNTIL"


class FlowStatement(BlockOp):
    BREAK = "BREAK"
    CONTINUE = "CONTINUE"


class Associativity(str, Enum):
    """Which operand position of a binary operator tolerates an equal tier."""

    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"
    NEITHER = "neither"

    def strict_left(self) -> bool:
        return self in (Associativity.RIGHT, Associativity.NEITHER)

    def strict_right(self) -> bool:
        return self in (Associativity.LEFT, Associativity.NEITHER)


def check_exhaustive(
    table: Mapping[Any, Any] | Iterable[Any],
    enum_cls: type[Enum],
    owner: str,
    skip: Iterable[Enum] = (),
) -> None:
    """Raise ``TypeError`` if *table* does not cover every member of *enum_cls*.

    Members in *skip* are rendered outside the table and are not required.
    """
    skipped = set(skip)
    missing = [member.value for member in enum_cls if member not in table and member not in skipped]
    if missing:
        raise TypeError(f"{owner} is missing {enum_cls.__name__} entries: {missing}")
