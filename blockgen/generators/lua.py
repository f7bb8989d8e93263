"""LuaGenerator — block tree → Lua 5.3 source."""

from __future__ import annotations

from ._base import BaseGenerator
from .. import constants
from ..blocks import Block
from ..context import GenerationContext, ValueCode
from ..operators import (
    ArithmeticOp,
    Associativity,
    CompareOp,
    FlowStatement,
    ListOp,
    LogicOp,
    MathConstant,
    NumberProperty,
    SingleOp,
    check_exhaustive,
)
from ..order import LuaOrder

CONTINUE_LABEL = "::continue::"


class LuaGenerator(BaseGenerator):
    """Emits Lua; blocks close with ``end`` and empty bodies stay empty."""

    LANGUAGE = constants.LANGUAGE_LUA
    ORDER = LuaOrder
    COMMENT_PREFIX = "-- "
    RESERVED_WORDS = frozenset(
        {
            # keywords
            "and", "break", "do", "else", "elseif", "end", "false", "for",
            "function", "goto", "if", "in", "local", "nil", "not", "or",
            "repeat", "return", "then", "true", "until", "while",
            # globals
            "_G", "_VERSION", "assert", "collectgarbage", "dofile", "error",
            "getmetatable", "ipairs", "load", "loadfile", "next", "pairs",
            "pcall", "print", "rawequal", "rawget", "rawlen", "rawset",
            "require", "select", "setmetatable", "tonumber", "tostring",
            "type", "xpcall",
            # standard libraries
            "coroutine", "debug", "io", "math", "os", "package", "string",
            "table", "utf8",
        }
    )

    TRUE_LITERAL = "true"
    FALSE_LITERAL = "false"
    NULL_LITERAL = "nil"
    EMPTY_LIST_LITERAL = "{}"

    IF_HEADER = "if {condition} then\n"
    ELSE_IF_HEADER = "elseif {condition} then\n"
    ELSE_HEADER = "else\n"
    BLOCK_END = "end\n"
    WHILE_HEADER = "while {condition} do\n"
    CONTINUE_STATEMENT = "goto continue"

    PROCEDURE_HEADER = "function {name}({args})\n"
    PROCEDURE_END = "end\n"

    COMPARE_OPERATORS = {
        CompareOp.EQ: ("==", LuaOrder.RELATIONAL),
        CompareOp.NEQ: ("~=", LuaOrder.RELATIONAL),
        CompareOp.LT: ("<", LuaOrder.RELATIONAL),
        CompareOp.LTE: ("<=", LuaOrder.RELATIONAL),
        CompareOp.GT: (">", LuaOrder.RELATIONAL),
        CompareOp.GTE: (">=", LuaOrder.RELATIONAL),
    }
    LOGIC_OPERATORS = {
        LogicOp.AND: ("and", LuaOrder.AND),
        LogicOp.OR: ("or", LuaOrder.OR),
    }
    ARITHMETIC_OPERATORS = {
        ArithmeticOp.ADD: ("+", LuaOrder.ADDITIVE, Associativity.LEFT),
        ArithmeticOp.MINUS: ("-", LuaOrder.ADDITIVE, Associativity.LEFT),
        ArithmeticOp.MULTIPLY: ("*", LuaOrder.MULTIPLICATIVE, Associativity.LEFT),
        ArithmeticOp.DIVIDE: ("/", LuaOrder.MULTIPLICATIVE, Associativity.LEFT),
        ArithmeticOp.POWER: ("^", LuaOrder.EXPONENTIATION, Associativity.RIGHT),
    }
    NOT_OPERATOR = ("not ", LuaOrder.UNARY)
    NEGATE_OPERATOR = ("-", LuaOrder.UNARY)
    MODULO_OPERATOR = ("%", LuaOrder.MULTIPLICATIVE)
    CALL_ORDER = LuaOrder.HIGH
    ASSIGNMENT_ORDER = LuaOrder.NONE

    # op → (template, argument order, result order)
    SINGLE_OPERATORS = {
        SingleOp.ROOT: ("math.sqrt({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.ABS: ("math.abs({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.LN: ("math.log({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.LOG10: ("math.log({arg}, 10)", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.EXP: ("math.exp({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.POW10: ("10 ^ {arg}", LuaOrder.EXPONENTIATION, LuaOrder.EXPONENTIATION),
        SingleOp.ROUND: ("math.floor({arg} + .5)", LuaOrder.ADDITIVE, LuaOrder.HIGH),
        SingleOp.ROUNDUP: ("math.ceil({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.ROUNDDOWN: ("math.floor({arg})", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.SIN: ("math.sin(math.rad({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.COS: ("math.cos(math.rad({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.TAN: ("math.tan(math.rad({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.ASIN: ("math.deg(math.asin({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.ACOS: ("math.deg(math.acos({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
        SingleOp.ATAN: ("math.deg(math.atan({arg}))", LuaOrder.NONE, LuaOrder.HIGH),
    }
    CONSTANTS = {
        MathConstant.PI: ("math.pi", LuaOrder.HIGH),
        MathConstant.E: ("math.exp(1)", LuaOrder.HIGH),
        MathConstant.GOLDEN_RATIO: ("(1 + math.sqrt(5)) / 2", LuaOrder.MULTIPLICATIVE),
        MathConstant.SQRT2: ("math.sqrt(2)", LuaOrder.HIGH),
        MathConstant.SQRT1_2: ("math.sqrt(1 / 2)", LuaOrder.HIGH),
        MathConstant.INFINITY: ("math.huge", LuaOrder.HIGH),
    }
    PROPERTIES = {
        NumberProperty.EVEN: (" % 2 == 0", LuaOrder.MULTIPLICATIVE, LuaOrder.RELATIONAL),
        NumberProperty.ODD: (" % 2 == 1", LuaOrder.MULTIPLICATIVE, LuaOrder.RELATIONAL),
        NumberProperty.WHOLE: (" % 1 == 0", LuaOrder.MULTIPLICATIVE, LuaOrder.RELATIONAL),
        NumberProperty.POSITIVE: (" > 0", LuaOrder.RELATIONAL, LuaOrder.RELATIONAL),
        NumberProperty.NEGATIVE: (" < 0", LuaOrder.RELATIONAL, LuaOrder.RELATIONAL),
        NumberProperty.DIVISIBLE_BY: (None, LuaOrder.MULTIPLICATIVE, LuaOrder.RELATIONAL),
        NumberProperty.PRIME: (None, LuaOrder.NONE, LuaOrder.HIGH),
    }

    def __init__(self):
        super().__init__()
        # NEG is rendered by _negate.
        check_exhaustive(self.SINGLE_OPERATORS, SingleOp, "LuaGenerator.SingleOp", skip=(SingleOp.NEG,))
        for table, enum_cls in (
            (self.CONSTANTS, MathConstant),
            (self.PROPERTIES, NumberProperty),
            (_LIST_HELPERS, ListOp),
        ):
            check_exhaustive(table, enum_cls, f"LuaGenerator.{enum_cls.__name__}")
        rules = self.rules
        rules.value("logic_ternary", self._logic_ternary)
        rules.statement("controls_repeat_ext", self._controls_repeat_ext)
        rules.alias("controls_repeat", "controls_repeat_ext")
        rules.value("math_number", self._math_number)
        rules.value("math_single", self._math_single)
        rules.alias("math_round", "math_single")
        rules.alias("math_trig", "math_single")
        rules.value("math_constant", self._math_constant)
        rules.value("math_number_property", self._math_number_property)
        rules.statement("math_change", self._math_change)
        rules.value("math_on_list", self._math_on_list)
        rules.value("math_constrain", self._math_constrain)
        rules.value("math_random_int", self._math_random_int)
        rules.value("math_random_float", self._math_random_float)
        rules.value("math_atan2", self._math_atan2)

    def scrub_naked_value(self, line: str) -> str:
        return f"local _ = {line}\n"

    # ── logic ────────────────────────────────────────────────────

    def _logic_ternary(self, block: Block, ctx: GenerationContext) -> ValueCode:
        # `c and t or e` yields e whenever t is false or nil.
        value_if = ctx.value_to_code(block, "IF", LuaOrder.AND) or "false"
        value_then = ctx.value_to_code(block, "THEN", LuaOrder.AND) or "nil"
        value_else = ctx.value_to_code(block, "ELSE", LuaOrder.OR) or "nil"
        return f"{value_if} and {value_then} or {value_else}", LuaOrder.OR

    # ── loops ────────────────────────────────────────────────────

    def _controls_repeat_ext(self, block: Block, ctx: GenerationContext) -> str:
        repeats = self._repeat_times(block, ctx)
        if self._is_number(repeats):
            repeats = str(int(float(repeats)))
        branch = self._loop_body(block, ctx)
        loop_var = ctx.distinct_name(constants.DEFAULT_LOOP_VARIABLE)
        return f"for {loop_var} = 1, {repeats} do\n{branch}end\n"

    def _controls_flow_statements(self, block: Block, ctx: GenerationContext) -> str:
        if FlowStatement.parse(block.field_value("FLOW")) == FlowStatement.CONTINUE:
            ctx.mark_continue()
        return super()._controls_flow_statements(block, ctx)

    def _finish_loop_body(self, block: Block, ctx: GenerationContext, branch: str) -> str:
        """Lua has no ``continue``; jump to a label closing the loop body."""
        if ctx.loop_continued(block):
            return branch + ctx.indent + CONTINUE_LABEL + "\n"
        return branch

    # ── math ─────────────────────────────────────────────────────

    def _math_number(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = block.field_value("NUM")
        literal = self._number_literal(value)
        if literal is None:
            number = self._parse_number(value)
            if number != number:
                return "(0 / 0)", LuaOrder.ATOMIC
            literal = "math.huge" if number > 0 else "-math.huge"
        order = LuaOrder.UNARY if literal.startswith("-") else LuaOrder.ATOMIC
        return literal, order

    def _math_single(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = SingleOp.parse(block.field_value("OP"))
        if op == SingleOp.NEG:
            arg = ctx.value_to_code(block, "NUM", LuaOrder.UNARY) or "0"
            return self._negate(arg)
        template, arg_order, result_order = self.SINGLE_OPERATORS[op]
        arg = ctx.value_to_code(block, "NUM", arg_order) or "0"
        return template.format(arg=arg), result_order

    def _math_constant(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return self.CONSTANTS[MathConstant.parse(block.field_value("CONSTANT"))]

    def _math_number_property(self, block: Block, ctx: GenerationContext) -> ValueCode:
        prop = NumberProperty.parse(block.field_value("PROPERTY"))
        suffix, input_order, output_order = self.PROPERTIES[prop]
        strict = input_order == LuaOrder.RELATIONAL
        number = ctx.value_to_code(block, "NUMBER_TO_CHECK", input_order, strict=strict) or "0"
        if prop == NumberProperty.PRIME:
            function_name = ctx.provide_function("math_isPrime", _IS_PRIME)
            return f"{function_name}({number})", output_order
        if prop == NumberProperty.DIVISIBLE_BY:
            divisor = ctx.value_to_code(block, "DIVISOR", LuaOrder.MULTIPLICATIVE, strict=True) or "0"
            if divisor == "0":
                return self.FALSE_LITERAL, LuaOrder.ATOMIC
            return f"{number} % {divisor} == 0", output_order
        return number + suffix, output_order

    def _math_change(self, block: Block, ctx: GenerationContext) -> str:
        delta = ctx.value_to_code(block, "DELTA", LuaOrder.ADDITIVE, strict=True) or "0"
        name = ctx.variable_name(block.field_value("VAR"))
        return f"{name} = {name} + {delta}\n"

    def _math_on_list(self, block: Block, ctx: GenerationContext) -> ValueCode:
        key, template = _LIST_HELPERS[ListOp.parse(block.field_value("OP"))]
        function_name = ctx.provide_function(key, template)
        items = ctx.value_to_code(block, "LIST", LuaOrder.NONE) or self.EMPTY_LIST_LITERAL
        return f"{function_name}({items})", LuaOrder.HIGH

    def _math_constrain(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = ctx.value_to_code(block, "VALUE", LuaOrder.NONE) or "0"
        low = ctx.value_to_code(block, "LOW", LuaOrder.NONE) or "-math.huge"
        high = ctx.value_to_code(block, "HIGH", LuaOrder.NONE) or "math.huge"
        return f"math.min(math.max({value}, {low}), {high})", LuaOrder.HIGH

    def _math_random_int(self, block: Block, ctx: GenerationContext) -> ValueCode:
        low = ctx.value_to_code(block, "FROM", LuaOrder.NONE) or "0"
        high = ctx.value_to_code(block, "TO", LuaOrder.NONE) or "0"
        return f"math.random({low}, {high})", LuaOrder.HIGH

    def _math_random_float(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return "math.random()", LuaOrder.HIGH

    def _math_atan2(self, block: Block, ctx: GenerationContext) -> ValueCode:
        x = ctx.value_to_code(block, "X", LuaOrder.NONE) or "0"
        y = ctx.value_to_code(block, "Y", LuaOrder.NONE) or "0"
        return f"math.deg(math.atan({y}, {x}))", LuaOrder.HIGH


_IS_PRIME = """
function {{FUNCTION_NAME}}(n)
  -- https://en.wikipedia.org/wiki/Primality_test#Naive_methods
  if n == 2 or n == 3 then
    return true
  end
  -- False if n is NaN, negative, is 1, or not whole.
  -- And false if n is divisible by 2 or 3.
  if not(n > 1) or n % 1 ~= 0 or n % 2 == 0 or n % 3 == 0 then
    return false
  end
  -- Check all the numbers of form 6k +/- 1, up to sqrt(n).
  for x = 6, math.sqrt(n) + 1.5, 6 do
    if n % (x - 1) == 0 or n % (x + 1) == 0 then
      return false
    end
  end
  return true
end
"""

_SUM = """
function {{FUNCTION_NAME}}(t)
  local result = 0
  for _, v in ipairs(t) do
    result = result + v
  end
  return result
end
"""

_MIN = """
function {{FUNCTION_NAME}}(t)
  if #t == 0 then
    return 0
  end
  local result = math.huge
  for _, v in ipairs(t) do
    if v < result then
      result = v
    end
  end
  return result
end
"""

_MAX = """
function {{FUNCTION_NAME}}(t)
  if #t == 0 then
    return 0
  end
  local result = -math.huge
  for _, v in ipairs(t) do
    if v > result then
      result = v
    end
  end
  return result
end
"""

_AVERAGE = """
function {{FUNCTION_NAME}}(t)
  if #t == 0 then
    return 0
  end
  local result = 0
  for _, v in ipairs(t) do
    result = result + v
  end
  return result / #t
end
"""

_MEDIAN = """
function {{FUNCTION_NAME}}(t)
  -- Source: http://lua-users.org/wiki/SimpleStats
  if #t == 0 then
    return 0
  end
  local temp = {}
  for _, v in ipairs(t) do
    if type(v) == 'number' then
      table.insert(temp, v)
    end
  end
  table.sort(temp)
  if #temp % 2 == 0 then
    return (temp[#temp / 2] + temp[(#temp / 2) + 1]) / 2
  else
    return temp[math.ceil(#temp / 2)]
  end
end
"""

_MODES = """
function {{FUNCTION_NAME}}(t)
  -- Source: http://lua-users.org/wiki/SimpleStats
  local counts = {}
  for _, v in ipairs(t) do
    if counts[v] == nil then
      counts[v] = 1
    else
      counts[v] = counts[v] + 1
    end
  end
  local biggestCount = 0
  for _, v in pairs(counts) do
    if v > biggestCount then
      biggestCount = v
    end
  end
  local temp = {}
  for k, v in pairs(counts) do
    if v == biggestCount then
      table.insert(temp, k)
    end
  end
  return temp
end
"""

_STANDARD_DEVIATION = """
function {{FUNCTION_NAME}}(t)
  if #t == 0 then
    return 0
  end
  local mean = 0
  for _, v in ipairs(t) do
    mean = mean + v
  end
  mean = mean / #t
  local variance = 0
  for _, v in ipairs(t) do
    variance = variance + (v - mean) ^ 2
  end
  return math.sqrt(variance / #t)
end
"""

_RANDOM_ITEM = """
function {{FUNCTION_NAME}}(t)
  if #t == 0 then
    return nil
  end
  return t[math.random(#t)]
end
"""

# op → (helper key, helper template)
_LIST_HELPERS = {
    ListOp.SUM: ("math_sum", _SUM),
    ListOp.MIN: ("math_min", _MIN),
    ListOp.MAX: ("math_max", _MAX),
    ListOp.AVERAGE: ("math_average", _AVERAGE),
    ListOp.MEDIAN: ("math_median", _MEDIAN),
    ListOp.MODE: ("math_modes", _MODES),
    ListOp.STD_DEV: ("math_standard_deviation", _STANDARD_DEVIATION),
    ListOp.RANDOM: ("math_random_list", _RANDOM_ITEM),
}
