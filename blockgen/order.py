"""Operator precedence tiers per target language.

Lower values bind tighter. ``ATOMIC`` is the tightest tier and ``NONE`` the
loosest; asking for a child at ``NONE`` never parenthesizes it. Members with
equal values are aliases for the same grammar tier.
"""

from __future__ import annotations

from enum import IntEnum


class PythonOrder(IntEnum):
    ATOMIC = 0
    COLLECTION = 1
    STRING_CONVERSION = 1
    MEMBER = 2
    FUNCTION_CALL = 2
    EXPONENTIATION = 3
    UNARY_SIGN = 4
    BITWISE_NOT = 4
    MULTIPLICATIVE = 5
    ADDITIVE = 6
    BITWISE_SHIFT = 7
    BITWISE_AND = 8
    BITWISE_XOR = 9
    BITWISE_OR = 10
    RELATIONAL = 11
    LOGICAL_NOT = 12
    LOGICAL_AND = 13
    LOGICAL_OR = 14
    CONDITIONAL = 15
    LAMBDA = 16
    NONE = 99


class LuaOrder(IntEnum):
    ATOMIC = 0
    HIGH = 1
    EXPONENTIATION = 2
    UNARY = 3
    MULTIPLICATIVE = 4
    ADDITIVE = 5
    CONCATENATION = 6
    RELATIONAL = 7
    AND = 8
    OR = 9
    NONE = 99


class PhpOrder(IntEnum):
    ATOMIC = 0
    CLONE = 1
    NEW = 1
    MEMBER = 2
    FUNCTION_CALL = 2
    POWER = 3
    INCREMENT = 4
    DECREMENT = 4
    BITWISE_NOT = 4
    CAST = 4
    SUPPRESS_ERROR = 4
    UNARY_NEGATION = 4
    UNARY_PLUS = 4
    INSTANCEOF = 5
    LOGICAL_NOT = 6
    MULTIPLICATION = 7
    DIVISION = 7
    MODULUS = 7
    ADDITION = 8
    SUBTRACTION = 8
    BITWISE_SHIFT = 9
    STRING_CONCAT = 10
    RELATIONAL = 11
    EQUALITY = 12
    REFERENCE = 13
    BITWISE_AND = 13
    BITWISE_XOR = 14
    BITWISE_OR = 15
    LOGICAL_AND = 16
    LOGICAL_OR = 17
    IF_NULL = 18
    CONDITIONAL = 19
    ASSIGNMENT = 20
    LOGICAL_AND_WEAK = 21
    LOGICAL_XOR = 22
    LOGICAL_OR_WEAK = 23
    NONE = 99


def needs_parens(inner: int, outer: int, strict: bool = False) -> bool:
    """Whether a child of tier *inner* must be wrapped where *outer* is required.

    Wraps when the child binds strictly looser than the position allows. A
    *strict* position (the non-associative side of a binary operator) also
    wraps a child at exactly the same tier. Atomic children are never wrapped
    and a position requiring the loosest tier never wraps.
    """
    if inner == 0:
        return False
    if outer >= 99:
        return False
    if strict:
        return inner >= outer
    return inner > outer
