"""PythonGenerator — block tree → Python 3 source."""

from __future__ import annotations

import builtins
import keyword
import math

from ._base import BaseGenerator
from .. import constants
from ..blocks import Block
from ..context import GenerationContext, ValueCode
from ..operators import (
    ArithmeticOp,
    Associativity,
    CompareOp,
    ListOp,
    LogicOp,
    MathConstant,
    NumberProperty,
    SingleOp,
    check_exhaustive,
)
from ..order import PythonOrder


class PythonGenerator(BaseGenerator):
    """Emits Python 3 with two-space indentation and ``pass`` for empty bodies."""

    LANGUAGE = constants.LANGUAGE_PYTHON
    ORDER = PythonOrder
    PASS = "pass"
    COMMENT_PREFIX = "# "
    RESERVED_WORDS = (
        frozenset(keyword.kwlist)
        | frozenset(dir(builtins))
        | frozenset({"math", "random", "numbers", "Number"})
    )

    TRUE_LITERAL = "True"
    FALSE_LITERAL = "False"
    NULL_LITERAL = "None"
    CONTROL_ESCAPE = "\\x{:02x}"

    GLOBAL_DECLARATION = "global {names}\n"

    COMPARE_OPERATORS = {
        CompareOp.EQ: ("==", PythonOrder.RELATIONAL),
        CompareOp.NEQ: ("!=", PythonOrder.RELATIONAL),
        CompareOp.LT: ("<", PythonOrder.RELATIONAL),
        CompareOp.LTE: ("<=", PythonOrder.RELATIONAL),
        CompareOp.GT: (">", PythonOrder.RELATIONAL),
        CompareOp.GTE: (">=", PythonOrder.RELATIONAL),
    }
    LOGIC_OPERATORS = {
        LogicOp.AND: ("and", PythonOrder.LOGICAL_AND),
        LogicOp.OR: ("or", PythonOrder.LOGICAL_OR),
    }
    ARITHMETIC_OPERATORS = {
        ArithmeticOp.ADD: ("+", PythonOrder.ADDITIVE, Associativity.LEFT),
        ArithmeticOp.MINUS: ("-", PythonOrder.ADDITIVE, Associativity.LEFT),
        ArithmeticOp.MULTIPLY: ("*", PythonOrder.MULTIPLICATIVE, Associativity.LEFT),
        ArithmeticOp.DIVIDE: ("/", PythonOrder.MULTIPLICATIVE, Associativity.LEFT),
        ArithmeticOp.POWER: ("**", PythonOrder.EXPONENTIATION, Associativity.RIGHT),
    }
    NOT_OPERATOR = ("not ", PythonOrder.LOGICAL_NOT)
    NEGATE_OPERATOR = ("-", PythonOrder.UNARY_SIGN)
    MODULO_OPERATOR = ("%", PythonOrder.MULTIPLICATIVE)
    CALL_ORDER = PythonOrder.FUNCTION_CALL
    ASSIGNMENT_ORDER = PythonOrder.NONE

    # op → (template, argument order, result order)
    SINGLE_OPERATORS = {
        SingleOp.ROOT: ("math.sqrt({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.ABS: ("math.fabs({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.LN: ("math.log({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.LOG10: ("math.log10({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.EXP: ("math.exp({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.POW10: ("math.pow(10, {arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.ROUND: ("round({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.ROUNDUP: ("math.ceil({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.ROUNDDOWN: ("math.floor({arg})", PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
        SingleOp.SIN: ("math.sin({arg} / 180.0 * math.pi)", PythonOrder.MULTIPLICATIVE, PythonOrder.FUNCTION_CALL),
        SingleOp.COS: ("math.cos({arg} / 180.0 * math.pi)", PythonOrder.MULTIPLICATIVE, PythonOrder.FUNCTION_CALL),
        SingleOp.TAN: ("math.tan({arg} / 180.0 * math.pi)", PythonOrder.MULTIPLICATIVE, PythonOrder.FUNCTION_CALL),
        SingleOp.ASIN: ("math.asin({arg}) / math.pi * 180", PythonOrder.NONE, PythonOrder.MULTIPLICATIVE),
        SingleOp.ACOS: ("math.acos({arg}) / math.pi * 180", PythonOrder.NONE, PythonOrder.MULTIPLICATIVE),
        SingleOp.ATAN: ("math.atan({arg}) / math.pi * 180", PythonOrder.NONE, PythonOrder.MULTIPLICATIVE),
    }
    CONSTANTS = {
        MathConstant.PI: ("math.pi", PythonOrder.MEMBER),
        MathConstant.E: ("math.e", PythonOrder.MEMBER),
        MathConstant.GOLDEN_RATIO: ("(1 + math.sqrt(5)) / 2", PythonOrder.MULTIPLICATIVE),
        MathConstant.SQRT2: ("math.sqrt(2)", PythonOrder.MEMBER),
        MathConstant.SQRT1_2: ("math.sqrt(1.0 / 2)", PythonOrder.MEMBER),
        MathConstant.INFINITY: ("float('inf')", PythonOrder.FUNCTION_CALL),
    }
    # property → (suffix, input order, result order); None suffix is special-cased
    PROPERTIES = {
        NumberProperty.EVEN: (" % 2 == 0", PythonOrder.MULTIPLICATIVE, PythonOrder.RELATIONAL),
        NumberProperty.ODD: (" % 2 == 1", PythonOrder.MULTIPLICATIVE, PythonOrder.RELATIONAL),
        NumberProperty.WHOLE: (" % 1 == 0", PythonOrder.MULTIPLICATIVE, PythonOrder.RELATIONAL),
        NumberProperty.POSITIVE: (" > 0", PythonOrder.RELATIONAL, PythonOrder.RELATIONAL),
        NumberProperty.NEGATIVE: (" < 0", PythonOrder.RELATIONAL, PythonOrder.RELATIONAL),
        NumberProperty.DIVISIBLE_BY: (None, PythonOrder.MULTIPLICATIVE, PythonOrder.RELATIONAL),
        NumberProperty.PRIME: (None, PythonOrder.NONE, PythonOrder.FUNCTION_CALL),
    }

    def __init__(self):
        super().__init__()
        # NEG is rendered by _negate.
        check_exhaustive(self.SINGLE_OPERATORS, SingleOp, "PythonGenerator.SingleOp", skip=(SingleOp.NEG,))
        for table, enum_cls in (
            (self.CONSTANTS, MathConstant),
            (self.PROPERTIES, NumberProperty),
        ):
            check_exhaustive(table, enum_cls, f"PythonGenerator.{enum_cls.__name__}")
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

    # ── program assembly ─────────────────────────────────────────

    def init(self, ctx: GenerationContext) -> None:
        super().init(ctx)
        names = [ctx.developer_variable_name(name) for name in ctx.workspace.developer_variables]
        names.extend(ctx.variable_name(name) for name in ctx.workspace.all_used_variables())
        if names:
            ctx.add_definition(
                constants.VARIABLES_DEFINITION_KEY,
                "\n".join(f"{name} = None" for name in names) + "\n",
            )

    def finish(self, ctx: GenerationContext, code: str) -> str:
        """Imports first, then variable initializers and functions."""
        imports: list[str] = []
        definitions: list[str] = []
        for key, text in ctx.definitions.items():
            if key.startswith(constants.IMPORT_DEFINITION_PREFIX):
                imports.append(text.strip())
            elif text.strip():
                definitions.append(text.strip("\n"))
        header = "\n\n".join(
            part for part in ("\n".join(imports), "\n\n".join(definitions)) if part
        )
        if not header:
            return code
        return header + "\n\n\n" + code

    def quote(self, text: str) -> str:
        text = self.escape_controls(text.replace("\\", "\\\\"))
        quote = "'"
        if "'" in text:
            if '"' not in text:
                quote = '"'
            else:
                text = text.replace("'", "\\'")
        return quote + text + quote

    def _import(self, ctx: GenerationContext, statement: str) -> None:
        ctx.add_definition(constants.IMPORT_DEFINITION_PREFIX + statement, statement)

    # ── logic ────────────────────────────────────────────────────

    def _logic_ternary(self, block: Block, ctx: GenerationContext) -> ValueCode:
        order = PythonOrder.CONDITIONAL
        value_if = ctx.value_to_code(block, "IF", order, strict=True) or "False"
        value_then = ctx.value_to_code(block, "THEN", order, strict=True) or "None"
        value_else = ctx.value_to_code(block, "ELSE", order) or "None"
        return f"{value_then} if {value_if} else {value_else}", order

    # ── loops ────────────────────────────────────────────────────

    def _controls_repeat_ext(self, block: Block, ctx: GenerationContext) -> str:
        repeats = self._repeat_times(block, ctx)
        if self._is_number(repeats):
            repeats = str(int(float(repeats)))
        else:
            repeats = f"int({repeats})"
        branch = self._loop_body(block, ctx)
        loop_var = ctx.distinct_name(constants.DEFAULT_LOOP_VARIABLE)
        return f"for {loop_var} in range({repeats}):\n{branch}"

    # ── math ─────────────────────────────────────────────────────

    def _math_number(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = block.field_value("NUM")
        literal = self._number_literal(value)
        if literal is None:
            number = self._parse_number(value)
            if math.isnan(number):
                return "float('nan')", PythonOrder.FUNCTION_CALL
            if number > 0:
                return "float('inf')", PythonOrder.FUNCTION_CALL
            return "-float('inf')", PythonOrder.UNARY_SIGN
        order = PythonOrder.UNARY_SIGN if literal.startswith("-") else PythonOrder.ATOMIC
        return literal, order

    def _math_single(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = SingleOp.parse(block.field_value("OP"))
        if op == SingleOp.NEG:
            arg = ctx.value_to_code(block, "NUM", PythonOrder.UNARY_SIGN) or "0"
            return self._negate(arg)
        template, arg_order, result_order = self.SINGLE_OPERATORS[op]
        arg = ctx.value_to_code(block, "NUM", arg_order) or "0"
        if template.startswith("math."):
            self._import(ctx, "import math")
        return template.format(arg=arg), result_order

    def _math_constant(self, block: Block, ctx: GenerationContext) -> ValueCode:
        constant = MathConstant.parse(block.field_value("CONSTANT"))
        if constant != MathConstant.INFINITY:
            self._import(ctx, "import math")
        return self.CONSTANTS[constant]

    def _math_number_property(self, block: Block, ctx: GenerationContext) -> ValueCode:
        prop = NumberProperty.parse(block.field_value("PROPERTY"))
        suffix, input_order, output_order = self.PROPERTIES[prop]
        strict = input_order == PythonOrder.RELATIONAL
        number = ctx.value_to_code(block, "NUMBER_TO_CHECK", input_order, strict=strict) or "0"
        if prop == NumberProperty.PRIME:
            self._import(ctx, "import math")
            self._import(ctx, "import numbers")
            function_name = ctx.provide_function("math_isPrime", _IS_PRIME)
            return f"{function_name}({number})", output_order
        if prop == NumberProperty.DIVISIBLE_BY:
            divisor = ctx.value_to_code(block, "DIVISOR", PythonOrder.MULTIPLICATIVE, strict=True) or "0"
            if divisor == "0":
                return self.FALSE_LITERAL, PythonOrder.ATOMIC
            return f"{number} % {divisor} == 0", output_order
        return number + suffix, output_order

    def _math_change(self, block: Block, ctx: GenerationContext) -> str:
        self._import(ctx, "from numbers import Number")
        delta = ctx.value_to_code(block, "DELTA", PythonOrder.ADDITIVE, strict=True) or "0"
        name = ctx.variable_name(block.field_value("VAR"))
        return f"{name} = ({name} if isinstance({name}, Number) else 0) + {delta}\n"

    def _math_on_list(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = ListOp.parse(block.field_value("OP"))
        items = ctx.value_to_code(block, "LIST", PythonOrder.NONE) or self.EMPTY_LIST_LITERAL
        if op == ListOp.SUM:
            code = f"sum({items})"
        elif op == ListOp.MIN:
            code = f"min({items})"
        elif op == ListOp.MAX:
            code = f"max({items})"
        elif op == ListOp.AVERAGE:
            self._import(ctx, "import numbers")
            code = f"{ctx.provide_function('math_mean', _MEAN)}({items})"
        elif op == ListOp.MEDIAN:
            self._import(ctx, "import numbers")
            code = f"{ctx.provide_function('math_median', _MEDIAN)}({items})"
        elif op == ListOp.MODE:
            code = f"{ctx.provide_function('math_modes', _MODES)}({items})"
        elif op == ListOp.STD_DEV:
            self._import(ctx, "import math")
            code = f"{ctx.provide_function('math_standard_deviation', _STANDARD_DEVIATION)}({items})"
        else:
            self._import(ctx, "import random")
            code = f"random.choice({items})"
        return code, PythonOrder.FUNCTION_CALL

    def _math_constrain(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = ctx.value_to_code(block, "VALUE", PythonOrder.NONE) or "0"
        low = ctx.value_to_code(block, "LOW", PythonOrder.NONE) or "0"
        high = ctx.value_to_code(block, "HIGH", PythonOrder.NONE) or "float('inf')"
        return f"min(max({value}, {low}), {high})", PythonOrder.FUNCTION_CALL

    def _math_random_int(self, block: Block, ctx: GenerationContext) -> ValueCode:
        self._import(ctx, "import random")
        low = ctx.value_to_code(block, "FROM", PythonOrder.NONE) or "0"
        high = ctx.value_to_code(block, "TO", PythonOrder.NONE) or "0"
        return f"random.randint({low}, {high})", PythonOrder.FUNCTION_CALL

    def _math_random_float(self, block: Block, ctx: GenerationContext) -> ValueCode:
        self._import(ctx, "import random")
        return "random.random()", PythonOrder.FUNCTION_CALL

    def _math_atan2(self, block: Block, ctx: GenerationContext) -> ValueCode:
        self._import(ctx, "import math")
        x = ctx.value_to_code(block, "X", PythonOrder.NONE) or "0"
        y = ctx.value_to_code(block, "Y", PythonOrder.NONE) or "0"
        return f"math.atan2({y}, {x}) / math.pi * 180", PythonOrder.MULTIPLICATIVE


_IS_PRIME = """
def {{FUNCTION_NAME}}(n):
  # https://en.wikipedia.org/wiki/Primality_test#Naive_methods
  # If n is not a number but a string, try parsing it.
  if not isinstance(n, numbers.Number):
    try:
      n = float(n)
    except (TypeError, ValueError):
      return False
  if n == 2 or n == 3:
    return True
  # False if n is negative, is 1, or not whole, or if n is divisible by 2 or 3.
  if n <= 1 or n % 1 != 0 or n % 2 == 0 or n % 3 == 0:
    return False
  # Check all the numbers of form 6k +/- 1, up to sqrt(n).
  for x in range(6, int(math.sqrt(n)) + 2, 6):
    if n % (x - 1) == 0 or n % (x + 1) == 0:
      return False
  return True
"""

_MEAN = """
def {{FUNCTION_NAME}}(myList):
  localList = [e for e in myList if isinstance(e, numbers.Number)]
  if not localList: return
  return float(sum(localList)) / len(localList)
"""

_MEDIAN = """
def {{FUNCTION_NAME}}(myList):
  localList = sorted([e for e in myList if isinstance(e, numbers.Number)])
  if not localList: return
  if len(localList) % 2 == 0:
    return (localList[len(localList) // 2 - 1] + localList[len(localList) // 2]) / 2.0
  else:
    return localList[(len(localList) - 1) // 2]
"""

_MODES = """
def {{FUNCTION_NAME}}(some_list):
  modes = []
  # Counts are kept as [item, count] pairs so unhashable items can be counted.
  counts = []
  maxCount = 1
  for item in some_list:
    found = False
    for count in counts:
      if count[0] == item:
        count[1] += 1
        maxCount = max(maxCount, count[1])
        found = True
    if not found:
      counts.append([item, 1])
  for counted_item, item_count in counts:
    if item_count == maxCount:
      modes.append(counted_item)
  return modes
"""

_STANDARD_DEVIATION = """
def {{FUNCTION_NAME}}(values):
  n = len(values)
  if n == 0: return
  mean = float(sum(values)) / n
  variance = sum((x - mean) ** 2 for x in values) / n
  return math.sqrt(variance)
"""
