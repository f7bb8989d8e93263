"""Tests for PhpGenerator — block trees to PHP source."""

from __future__ import annotations

from blockgen.blocks import Block, Workspace
from blockgen.config import GeneratorConfig
from blockgen.context import GenerationContext
from blockgen.generators.php import PhpGenerator
from blockgen.order import PhpOrder

from block_builders import (
    arith,
    block,
    boolean,
    call,
    compare,
    flow,
    if_block,
    logic,
    num,
    procedure,
    repeat,
    set_var,
    ternary,
    text,
    var,
    while_loop,
)


def _generate(*blocks: Block, config: GeneratorConfig | None = None, **workspace_fields) -> str:
    workspace = Workspace(blocks=list(blocks), **workspace_fields)
    return PhpGenerator().generate(workspace, config)


def _expr(value_block: Block) -> tuple[str, int]:
    with GenerationContext(PhpGenerator()) as ctx:
        return ctx.block_to_code(value_block)


def _code(value_block: Block) -> str:
    return _expr(value_block)[0]


def _inner_ternary() -> Block:
    return ternary(var("d"), var("e"), var("f"))


class TestPhpProgram:
    def test_assignment(self):
        assert _generate(set_var("x", num(1))) == "$x = 1;\n"

    def test_naked_value_terminated(self):
        assert _generate(arith("ADD", num(1), num(2))) == "1 + 2;\n"

    def test_comment_prefix(self):
        assert _generate(set_var("x", num(1), comment="note")) == "// note\n$x = 1;\n"

    def test_reserved_variable_is_renamed(self):
        assert _generate(set_var("count", num(1))) == "$count2 = 1;\n"

    def test_variable_and_loop_counter_share_name_pool(self):
        code = _generate(set_var("count", num(1)), repeat(2))
        assert code == (
            "$count2 = 1;\n\n"
            "for ($count3 = 0; $count3 < 2; $count3++) {\n}\n"
        )

    def test_statement_prefix(self):
        config = GeneratorConfig(statement_prefix="highlight(%1);\n")
        code = _generate(set_var("x", num(1), id="s1"), config=config)
        assert code == "highlight('s1');\n$x = 1;\n"


class TestPhpControlFlow:
    def test_if(self):
        code = _generate(if_block((boolean(True), set_var("x", num(1)))))
        assert code == "if (true) {\n  $x = 1;\n}\n"

    def test_else_if_and_else(self):
        code = _generate(if_block((var("a"), None), (var("b"), None), else_body=None))
        assert code == "if ($a) {\n} else if ($b) {\n} else {\n}\n"

    def test_until(self):
        code = _generate(while_loop(var("done"), set_var("x", num(1)), mode="UNTIL"))
        assert code == "while (!$done) {\n  $x = 1;\n}\n"

    def test_repeat_uses_distinct_counter(self):
        assert _generate(repeat(10)) == "for ($count2 = 0; $count2 < 10; $count2++) {\n}\n"

    def test_repeat_simple_variable_count(self):
        assert _generate(repeat(var("n"))) == "for ($count2 = 0; $count2 < $n; $count2++) {\n}\n"

    def test_repeat_computed_count_is_evaluated_once(self):
        code = _generate(repeat(arith("ADD", var("n"), num(1))))
        assert code == (
            "$repeat_end = $n + 1;\n"
            "for ($count2 = 0; $count2 < $repeat_end; $count2++) {\n}\n"
        )

    def test_break(self):
        assert _generate(while_loop(boolean(True), flow("BREAK"))) == "while (true) {\n  break;\n}\n"

    def test_continue(self):
        code = _generate(while_loop(boolean(True), flow("CONTINUE")))
        assert code == "while (true) {\n  continue;\n}\n"


class TestPhpExpressions:
    def test_logic_operators(self):
        assert _expr(logic("OR", var("a"), var("b"))) == ("$a || $b", PhpOrder.LOGICAL_OR)
        assert _code(logic("AND", logic("OR", var("a"), var("b")), var("c"))) == "($a || $b) && $c"

    def test_negated_comparison_is_wrapped(self):
        expr = block("logic_negate", values={"BOOL": compare("EQ", var("a"), var("b"))})
        assert _code(expr) == "!($a == $b)"

    def test_relational_inside_equality(self):
        expr = compare("EQ", compare("LT", var("a"), var("b")), var("c"))
        assert _code(expr) == "$a < $b == $c"

    def test_chained_equality_is_wrapped(self):
        expr = compare("EQ", compare("EQ", var("a"), var("b")), var("c"))
        assert _code(expr) == "($a == $b) == $c"

    def test_ternary(self):
        assert _expr(ternary(var("c"), var("a"), var("b"))) == ("$c ? $a : $b", PhpOrder.CONDITIONAL)

    def test_nested_ternaries_are_always_wrapped(self):
        assert _code(ternary(var("c"), var("a"), _inner_ternary())) == "$c ? $a : ($d ? $e : $f)"
        assert _code(ternary(_inner_ternary(), var("a"), var("b"))) == "($d ? $e : $f) ? $a : $b"

    def test_power(self):
        assert _code(arith("POWER", arith("POWER", var("a"), var("b")), var("c"))) == "($a ** $b) ** $c"
        assert _code(arith("POWER", num(-2), num(2))) == "(-2) ** 2"

    def test_single_quoted_text(self):
        assert _code(text("it's")) == "'it\\'s'"

    def test_text_with_newline_is_double_quoted(self):
        assert _code(text("cost $5\n")) == '"cost \\$5\\n"'

    def test_control_characters_use_double_quotes(self):
        assert _code(text("a\rb\tc\x00")) == '"a\\rb\\tc\\x00"'

    def test_infinities_and_nan(self):
        assert _code(num("Infinity")) == "INF"
        assert _expr(num("-Infinity")) == ("-INF", PhpOrder.UNARY_NEGATION)
        assert _code(num("NaN")) == "NAN"


class TestPhpMath:
    def test_change(self):
        assert _generate(block("math_change", {"VAR": "x"}, {"DELTA": num(1)})) == "$x += 1;\n"

    def test_whole(self):
        expr = block("math_number_property", {"PROPERTY": "WHOLE"}, {"NUMBER_TO_CHECK": var("x")})
        assert _code(expr) == "is_int($x)"

    def test_random_float(self):
        expr = block("math_random_float")
        assert _expr(expr) == ("(float)rand() / (float)getrandmax()", PhpOrder.DIVISION)

    def test_random_int_provides_helper(self):
        rand = block("math_random_int", values={"FROM": num(1), "TO": num(6)})
        code = _generate(set_var("r", rand))
        assert code.startswith("function math_random_int($a, $b) {\n")
        assert code.endswith("$r = math_random_int(1, 6);\n")

    def test_list_sum_is_builtin(self):
        assert _code(block("math_on_list", {"OP": "SUM"}, {"LIST": var("xs")})) == "array_sum($xs)"

    def test_average_helper(self):
        code = _generate(set_var("m", block("math_on_list", {"OP": "AVERAGE"}, {"LIST": var("xs")})))
        assert "function math_mean($myList) {" in code
        assert code.endswith("$m = math_mean($xs);\n")


class TestPhpProcedures:
    def test_definition_declares_globals(self):
        code = _generate(
            call("do_something", returns=False),
            procedure("do_something", body=set_var("x", num(1))),
        )
        assert code == (
            "function do_something() {\n  global $x;\n  $x = 1;\n}\n\n\n"
            "do_something();\n"
        )

    def test_parameters(self):
        code = _generate(procedure("add", ("a", "b"), returns=arith("ADD", var("a"), var("b"))))
        assert code == "function add($a, $b) {\n  return $a + $b;\n}\n"

    def test_empty_procedure(self):
        assert _generate(procedure("noop")) == "function noop() {\n}\n"

    def test_developer_variables_declared_global(self):
        code = _generate(procedure("noop"), developer_variables=["tick"])
        assert code == "function noop() {\n  global $tick;\n}\n"

    def test_procedure_named_like_builtin_in_other_case(self):
        code = _generate(procedure("Abs"), procedure("COUNT"))
        assert code == "function Abs2() {\n}\n\nfunction COUNT2() {\n}\n"

    def test_procedure_names_clash_case_insensitively_with_helpers(self):
        code = _generate(
            procedure("Math_Mean"),
            set_var("m", block("math_on_list", {"OP": "AVERAGE"}, {"LIST": var("xs")})),
        )
        assert "function Math_Mean() {" in code
        assert "function math_mean2($myList) {" in code

    def test_if_return(self):
        stmt = block("procedures_ifreturn", values={"CONDITION": var("c")})
        with GenerationContext(PhpGenerator()) as ctx:
            assert ctx.block_to_code(stmt) == "if ($c) {\n  return;\n}\n"
