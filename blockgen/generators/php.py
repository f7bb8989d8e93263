"""PhpGenerator — block tree → PHP 8 source (without the opening tag)."""

from __future__ import annotations

import re

from ._base import BaseGenerator
from .. import constants
from ..blocks import Block
from ..context import GenerationContext, ValueCode
from ..names import NameType
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
from ..order import PhpOrder

_SIMPLE_OPERAND = re.compile(r"^\$?\w+$")


class PhpGenerator(BaseGenerator):
    """Emits PHP statements; variables carry the ``$`` sigil."""

    LANGUAGE = constants.LANGUAGE_PHP
    ORDER = PhpOrder
    COMMENT_PREFIX = "// "
    STATEMENT_END = ";\n"
    VARIABLE_PREFIX = "$"
    RESERVED_WORDS = frozenset(
        {
            # keywords
            "__halt_compiler", "abstract", "and", "array", "as", "break",
            "callable", "case", "catch", "class", "clone", "const",
            "continue", "declare", "default", "die", "do", "echo", "else",
            "elseif", "empty", "enddeclare", "endfor", "endforeach", "endif",
            "endswitch", "endwhile", "enum", "eval", "exit", "extends",
            "final", "finally", "fn", "for", "foreach", "function", "global",
            "goto", "if", "implements", "include", "include_once",
            "instanceof", "insteadof", "interface", "isset", "list", "match",
            "namespace", "new", "or", "print", "private", "protected",
            "public", "readonly", "require", "require_once", "return",
            "static", "switch", "throw", "trait", "try", "unset", "use",
            "var", "while", "xor", "yield",
            # pseudo-variables and builtins used by generated code
            "this", "GLOBALS", "abs", "sqrt", "log", "exp", "pow", "round",
            "ceil", "floor", "sin", "cos", "tan", "asin", "acos", "atan",
            "atan2", "pi", "min", "max", "count", "sort", "rand", "mt_rand",
            "mt_getrandmax", "is_int", "is_numeric", "array_sum",
            "array_count_values", "array_keys", "arsort", "current",
        }
    )
    # Function names are case-insensitive in PHP; variable names are not.
    CASE_INSENSITIVE_NAMES = frozenset({NameType.PROCEDURE})

    TRUE_LITERAL = "true"
    FALSE_LITERAL = "false"
    NULL_LITERAL = "null"
    EMPTY_LIST_LITERAL = "array()"
    CONTROL_ESCAPE = "\\x{:02x}"

    IF_HEADER = "if ({condition}) {{\n"
    ELSE_IF_HEADER = "}} else if ({condition}) {{\n"
    ELSE_HEADER = "} else {\n"
    BLOCK_END = "}\n"
    WHILE_HEADER = "while ({condition}) {{\n"

    PROCEDURE_HEADER = "function {name}({args}) {{\n"
    PROCEDURE_END = "}\n"
    GLOBAL_DECLARATION = "global {names};\n"

    COMPARE_OPERATORS = {
        CompareOp.EQ: ("==", PhpOrder.EQUALITY),
        CompareOp.NEQ: ("!=", PhpOrder.EQUALITY),
        CompareOp.LT: ("<", PhpOrder.RELATIONAL),
        CompareOp.LTE: ("<=", PhpOrder.RELATIONAL),
        CompareOp.GT: (">", PhpOrder.RELATIONAL),
        CompareOp.GTE: (">=", PhpOrder.RELATIONAL),
    }
    LOGIC_OPERATORS = {
        LogicOp.AND: ("&&", PhpOrder.LOGICAL_AND),
        LogicOp.OR: ("||", PhpOrder.LOGICAL_OR),
    }
    ARITHMETIC_OPERATORS = {
        ArithmeticOp.ADD: ("+", PhpOrder.ADDITION, Associativity.LEFT),
        ArithmeticOp.MINUS: ("-", PhpOrder.SUBTRACTION, Associativity.LEFT),
        ArithmeticOp.MULTIPLY: ("*", PhpOrder.MULTIPLICATION, Associativity.LEFT),
        ArithmeticOp.DIVIDE: ("/", PhpOrder.DIVISION, Associativity.LEFT),
        ArithmeticOp.POWER: ("**", PhpOrder.POWER, Associativity.RIGHT),
    }
    NOT_OPERATOR = ("!", PhpOrder.LOGICAL_NOT)
    NEGATE_OPERATOR = ("-", PhpOrder.UNARY_NEGATION)
    MODULO_OPERATOR = ("%", PhpOrder.MODULUS)
    CALL_ORDER = PhpOrder.FUNCTION_CALL
    ASSIGNMENT_ORDER = PhpOrder.ASSIGNMENT

    # op → (template, argument order, result order)
    SINGLE_OPERATORS = {
        SingleOp.ABS: ("abs({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.ROOT: ("sqrt({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.LN: ("log({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.EXP: ("exp({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.POW10: ("pow(10, {arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.ROUND: ("round({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.ROUNDUP: ("ceil({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.ROUNDDOWN: ("floor({arg})", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        SingleOp.SIN: ("sin({arg} / 180 * pi())", PhpOrder.DIVISION, PhpOrder.FUNCTION_CALL),
        SingleOp.COS: ("cos({arg} / 180 * pi())", PhpOrder.DIVISION, PhpOrder.FUNCTION_CALL),
        SingleOp.TAN: ("tan({arg} / 180 * pi())", PhpOrder.DIVISION, PhpOrder.FUNCTION_CALL),
        SingleOp.LOG10: ("log({arg}) / log(10)", PhpOrder.NONE, PhpOrder.DIVISION),
        SingleOp.ASIN: ("asin({arg}) / pi() * 180", PhpOrder.NONE, PhpOrder.DIVISION),
        SingleOp.ACOS: ("acos({arg}) / pi() * 180", PhpOrder.NONE, PhpOrder.DIVISION),
        SingleOp.ATAN: ("atan({arg}) / pi() * 180", PhpOrder.NONE, PhpOrder.DIVISION),
    }
    CONSTANTS = {
        MathConstant.PI: ("M_PI", PhpOrder.ATOMIC),
        MathConstant.E: ("M_E", PhpOrder.ATOMIC),
        MathConstant.GOLDEN_RATIO: ("(1 + sqrt(5)) / 2", PhpOrder.DIVISION),
        MathConstant.SQRT2: ("M_SQRT2", PhpOrder.ATOMIC),
        MathConstant.SQRT1_2: ("M_SQRT1_2", PhpOrder.ATOMIC),
        MathConstant.INFINITY: ("INF", PhpOrder.ATOMIC),
    }
    # property → (prefix, suffix, input order, result order)
    PROPERTIES = {
        NumberProperty.EVEN: ("", " % 2 == 0", PhpOrder.MODULUS, PhpOrder.EQUALITY),
        NumberProperty.ODD: ("", " % 2 == 1", PhpOrder.MODULUS, PhpOrder.EQUALITY),
        NumberProperty.WHOLE: ("is_int(", ")", PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
        NumberProperty.POSITIVE: ("", " > 0", PhpOrder.RELATIONAL, PhpOrder.RELATIONAL),
        NumberProperty.NEGATIVE: ("", " < 0", PhpOrder.RELATIONAL, PhpOrder.RELATIONAL),
        NumberProperty.DIVISIBLE_BY: (None, None, PhpOrder.MODULUS, PhpOrder.EQUALITY),
        NumberProperty.PRIME: (None, None, PhpOrder.NONE, PhpOrder.FUNCTION_CALL),
    }

    def __init__(self):
        super().__init__()
        # NEG is rendered by _negate.
        check_exhaustive(self.SINGLE_OPERATORS, SingleOp, "PhpGenerator.SingleOp", skip=(SingleOp.NEG,))
        for table, enum_cls in (
            (self.CONSTANTS, MathConstant),
            (self.PROPERTIES, NumberProperty),
        ):
            check_exhaustive(table, enum_cls, f"PhpGenerator.{enum_cls.__name__}")
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
        return line + ";\n"

    def quote(self, text: str) -> str:
        if not any(ch < " " for ch in text):
            return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"
        # Single-quoted strings have no control-character escapes.
        escaped = (
            text.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("$", "\\$")
        )
        escaped = self.escape_controls(escaped)
        return f'"{escaped}"'

    # ── logic ────────────────────────────────────────────────────

    def _logic_ternary(self, block: Block, ctx: GenerationContext) -> ValueCode:
        # Nesting an unparenthesized ternary is a compile error in PHP 8.
        order = PhpOrder.CONDITIONAL
        value_if = ctx.value_to_code(block, "IF", order, strict=True) or "false"
        value_then = ctx.value_to_code(block, "THEN", order, strict=True) or "null"
        value_else = ctx.value_to_code(block, "ELSE", order, strict=True) or "null"
        return f"{value_if} ? {value_then} : {value_else}", order

    # ── loops ────────────────────────────────────────────────────

    def _controls_repeat_ext(self, block: Block, ctx: GenerationContext) -> str:
        repeats = self._repeat_times(block, ctx)
        branch = self._loop_body(block, ctx)
        code = ""
        loop_var = ctx.distinct_name(constants.DEFAULT_LOOP_VARIABLE)
        end_var = repeats
        if not _SIMPLE_OPERAND.match(repeats) and not self._is_number(repeats):
            end_var = ctx.distinct_name("repeat_end")
            code += self.statement(f"{end_var} = {repeats}")
        code += (
            f"for ({loop_var} = 0; {loop_var} < {end_var}; {loop_var}++) {{\n"
            + branch
            + "}\n"
        )
        return code

    # ── math ─────────────────────────────────────────────────────

    def _math_number(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = block.field_value("NUM")
        literal = self._number_literal(value)
        if literal is None:
            number = self._parse_number(value)
            if number != number:
                return "NAN", PhpOrder.ATOMIC
            literal = "INF" if number > 0 else "-INF"
        order = PhpOrder.UNARY_NEGATION if literal.startswith("-") else PhpOrder.ATOMIC
        return literal, order

    def _math_single(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = SingleOp.parse(block.field_value("OP"))
        if op == SingleOp.NEG:
            arg = ctx.value_to_code(block, "NUM", PhpOrder.UNARY_NEGATION) or "0"
            return self._negate(arg)
        template, arg_order, result_order = self.SINGLE_OPERATORS[op]
        arg = ctx.value_to_code(block, "NUM", arg_order) or "0"
        return template.format(arg=arg), result_order

    def _math_constant(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return self.CONSTANTS[MathConstant.parse(block.field_value("CONSTANT"))]

    def _math_number_property(self, block: Block, ctx: GenerationContext) -> ValueCode:
        prop = NumberProperty.parse(block.field_value("PROPERTY"))
        prefix, suffix, input_order, output_order = self.PROPERTIES[prop]
        strict = input_order == PhpOrder.RELATIONAL
        number = ctx.value_to_code(block, "NUMBER_TO_CHECK", input_order, strict=strict) or "0"
        if prop == NumberProperty.PRIME:
            function_name = ctx.provide_function("math_isPrime", _IS_PRIME)
            return f"{function_name}({number})", output_order
        if prop == NumberProperty.DIVISIBLE_BY:
            divisor = ctx.value_to_code(block, "DIVISOR", PhpOrder.MODULUS, strict=True) or "0"
            if divisor == "0":
                return self.FALSE_LITERAL, PhpOrder.ATOMIC
            return f"{number} % {divisor} == 0", output_order
        return prefix + number + suffix, output_order

    def _math_change(self, block: Block, ctx: GenerationContext) -> str:
        delta = ctx.value_to_code(block, "DELTA", PhpOrder.ADDITION) or "0"
        name = ctx.variable_name(block.field_value("VAR"))
        return self.statement(f"{name} += {delta}")

    def _math_on_list(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = ListOp.parse(block.field_value("OP"))
        items = ctx.value_to_code(block, "LIST", PhpOrder.NONE) or self.EMPTY_LIST_LITERAL
        if op == ListOp.SUM:
            code = f"array_sum({items})"
        elif op == ListOp.MIN:
            code = f"min({items})"
        elif op == ListOp.MAX:
            code = f"max({items})"
        else:
            key, template = _LIST_HELPERS[op]
            code = f"{ctx.provide_function(key, template)}({items})"
        return code, PhpOrder.FUNCTION_CALL

    def _math_constrain(self, block: Block, ctx: GenerationContext) -> ValueCode:
        value = ctx.value_to_code(block, "VALUE", PhpOrder.NONE) or "0"
        low = ctx.value_to_code(block, "LOW", PhpOrder.NONE) or "0"
        high = ctx.value_to_code(block, "HIGH", PhpOrder.NONE) or "INF"
        return f"min(max({value}, {low}), {high})", PhpOrder.FUNCTION_CALL

    def _math_random_int(self, block: Block, ctx: GenerationContext) -> ValueCode:
        low = ctx.value_to_code(block, "FROM", PhpOrder.NONE) or "0"
        high = ctx.value_to_code(block, "TO", PhpOrder.NONE) or "0"
        function_name = ctx.provide_function("math_random_int", _RANDOM_INT)
        return f"{function_name}({low}, {high})", PhpOrder.FUNCTION_CALL

    def _math_random_float(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return "(float)rand() / (float)getrandmax()", PhpOrder.DIVISION

    def _math_atan2(self, block: Block, ctx: GenerationContext) -> ValueCode:
        x = ctx.value_to_code(block, "X", PhpOrder.NONE) or "0"
        y = ctx.value_to_code(block, "Y", PhpOrder.NONE) or "0"
        return f"atan2({y}, {x}) / pi() * 180", PhpOrder.DIVISION


_IS_PRIME = """
function {{FUNCTION_NAME}}($n) {
  // https://en.wikipedia.org/wiki/Primality_test#Naive_methods
  if ($n == 2 || $n == 3) {
    return true;
  }
  // False if n is NaN, negative, is 1, or not whole.
  // And false if n is divisible by 2 or 3.
  if (!is_numeric($n) || $n <= 1 || $n % 1 != 0 || $n % 2 == 0 || $n % 3 == 0) {
    return false;
  }
  // Check all the numbers of form 6k +/- 1, up to sqrt(n).
  for ($x = 6; $x <= sqrt($n) + 1; $x += 6) {
    if ($n % ($x - 1) == 0 || $n % ($x + 1) == 0) {
      return false;
    }
  }
  return true;
}
"""

_MEAN = """
function {{FUNCTION_NAME}}($myList) {
  return array_sum($myList) / count($myList);
}
"""

_MEDIAN = """
function {{FUNCTION_NAME}}($arr) {
  sort($arr,SORT_NUMERIC);
  return (count($arr) % 2) ? $arr[floor(count($arr) / 2)] :
      ($arr[floor(count($arr) / 2)] + $arr[floor(count($arr) / 2) - 1]) / 2;
}
"""

_MODES = """
function {{FUNCTION_NAME}}($values) {
  if (empty($values)) return array();
  $counts = array_count_values($values);
  arsort($counts); // Sort counts in descending order
  $modes = array_keys($counts, current($counts), true);
  return $modes;
}
"""

_STANDARD_DEVIATION = """
function {{FUNCTION_NAME}}($numbers) {
  $n = count($numbers);
  if (!$n) return null;
  $mean = array_sum($numbers) / count($numbers);
  foreach($numbers as $key => $num) $devs[$key] = pow($num - $mean, 2);
  return sqrt(array_sum($devs) / (count($devs) - 1));
}
"""

_RANDOM_ITEM = """
function {{FUNCTION_NAME}}($list) {
  $x = rand(0, count($list)-1);
  return $list[$x];
}
"""

_RANDOM_INT = """
function {{FUNCTION_NAME}}($a, $b) {
  if ($a > $b) {
    return rand($b, $a);
  }
  return rand($a, $b);
}
"""

# op → (helper key, helper template); SUM, MIN and MAX map onto builtins
_LIST_HELPERS = {
    ListOp.AVERAGE: ("math_mean", _MEAN),
    ListOp.MEDIAN: ("math_median", _MEDIAN),
    ListOp.MODE: ("math_modes", _MODES),
    ListOp.STD_DEV: ("math_standard_deviation", _STANDARD_DEVIATION),
    ListOp.RANDOM: ("math_random_list", _RANDOM_ITEM),
}
