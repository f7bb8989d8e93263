"""Tests for GenerationContext — the per-pass rendering engine."""

from __future__ import annotations

import pytest

from blockgen.blocks import Workspace
from blockgen.config import GeneratorConfig
from blockgen.context import GenerationContext
from blockgen.errors import GenerationError, StructureTooDeepError, UnknownBlockTypeError
from blockgen.generators.python import PythonGenerator
from blockgen.order import PythonOrder

from block_builders import block, boolean, logic, negate_number, num, set_var, var, while_loop


def _context(config: GeneratorConfig | None = None) -> GenerationContext:
    return GenerationContext(PythonGenerator(), config)


class TestPrefixLines:
    def test_prefixes_every_line(self):
        assert GenerationContext.prefix_lines("a\nb\n", "  ") == "  a\n  b\n"

    def test_without_trailing_newline(self):
        assert GenerationContext.prefix_lines("a\nb", "# ") == "# a\n# b"

    def test_empty_text(self):
        assert GenerationContext.prefix_lines("", "  ") == ""


class TestValueRendering:
    def test_value_block_returns_code_and_order(self):
        with _context() as ctx:
            assert ctx.block_to_code(logic("OR")) == ("False or False", PythonOrder.LOGICAL_OR)

    def test_unconnected_socket_is_empty(self):
        with _context() as ctx:
            assert ctx.value_to_code(set_var("x", None), "VALUE", PythonOrder.NONE) == ""

    def test_statement_block_in_value_socket_fails(self):
        holder = block("logic_negate", values={"BOOL": set_var("x", num(1))})
        with _context() as ctx:
            with pytest.raises(GenerationError, match="statement block"):
                ctx.block_to_code(holder)

    def test_unknown_block_type(self):
        with _context() as ctx:
            with pytest.raises(UnknownBlockTypeError):
                ctx.block_to_code(block("no_such_block"))


class TestStatementRendering:
    def test_chain_concatenates_with_one_newline_each(self):
        chain = set_var("x", num(1), next_block=set_var("y", num(2)))
        with _context() as ctx:
            assert ctx.block_to_code(chain) == "x = 1\ny = 2\n"

    def test_statement_to_code_indents(self):
        loop = while_loop(var("go"), set_var("x", num(1), next_block=set_var("y", num(2))))
        with _context() as ctx:
            assert ctx.statement_to_code(loop, "DO") == "  x = 1\n  y = 2\n"

    def test_configured_indent(self):
        loop = while_loop(var("go"), set_var("x", num(1)))
        with _context(GeneratorConfig(indent="    ")) as ctx:
            assert ctx.block_to_code(loop) == "while go:\n    x = 1\n"

    def test_disabled_block_is_skipped(self):
        chain = set_var("x", num(1), enabled=False, next_block=set_var("y", num(2)))
        with _context() as ctx:
            assert ctx.block_to_code(chain) == "y = 2\n"

    def test_comments_precede_statement(self):
        stmt = set_var("x", block("math_number", {"NUM": 1}, comment="one"), comment="assign")
        with _context() as ctx:
            assert ctx.block_to_code(stmt) == "# assign\n# one\nx = 1\n"

    def test_comments_can_be_disabled(self):
        stmt = set_var("x", num(1), comment="assign")
        with _context(GeneratorConfig(emit_comments=False)) as ctx:
            assert ctx.block_to_code(stmt) == "x = 1\n"


class TestInjection:
    def test_prefix_and_suffix_wrap_each_statement(self):
        config = GeneratorConfig(statement_prefix="enter(%1)\n", statement_suffix="leave(%1)")
        chain = set_var("x", num(1), id="s1", next_block=set_var("y", num(2), id="s2"))
        with _context(config) as ctx:
            assert ctx.block_to_code(chain) == (
                "enter('s1')\nx = 1\nleave('s1')\n"
                "enter('s2')\ny = 2\nleave('s2')\n"
            )

    def test_inject_id_quotes_block_id(self):
        with _context() as ctx:
            assert ctx.inject_id("highlight(%1)", block("text", id="abc")) == "highlight('abc')"

    def test_loop_trap_heads_loop_body(self):
        loop = while_loop(boolean(True), id="w1")
        with _context(GeneratorConfig(infinite_loop_trap="trap(%1)\n")) as ctx:
            assert ctx.block_to_code(loop) == "while True:\n  trap('w1')\n"


class TestGuards:
    def test_depth_guard(self):
        expr = var("x")
        for _ in range(30):
            expr = negate_number(expr)
        with _context(GeneratorConfig(max_depth=10)) as ctx:
            with pytest.raises(StructureTooDeepError, match="deeper than 10"):
                ctx.block_to_code(expr)

    def test_deep_structure_within_limit(self):
        expr = var("x")
        for _ in range(50):
            expr = negate_number(expr)
        with _context() as ctx:
            code, _ = ctx.block_to_code(expr)
        assert code == "- " * 49 + "-x"

    def test_cyclic_chain(self):
        a = set_var("a", num(1))
        b = set_var("b", num(2))
        a.next_block = b
        b.next_block = a
        with _context() as ctx:
            with pytest.raises(StructureTooDeepError, match="Cyclic"):
                ctx.block_to_code(a)

    def test_block_containing_itself(self):
        loop = block("logic_negate")
        loop.values["BOOL"] = loop
        with _context() as ctx:
            with pytest.raises(StructureTooDeepError, match="contains itself"):
                ctx.block_to_code(loop)

    def test_failed_pass_leaves_generator_reusable(self):
        generator = PythonGenerator()
        bad = block("logic_compare", {"OP": "SPACESHIP"}, {"A": var("a"), "B": var("b")})
        with pytest.raises(GenerationError):
            generator.generate(Workspace(blocks=[set_var("x", bad)]))
        assert generator.generate(Workspace(blocks=[set_var("y", num(1))])) == "y = None\n\n\ny = 1\n"


class TestLoopStack:
    def test_enclosing_loop(self):
        loop = while_loop(var("go"))
        with _context() as ctx:
            assert ctx.enclosing_loop() is None
            with ctx.loop_scope(loop):
                assert ctx.enclosing_loop() is loop
            assert ctx.enclosing_loop() is None

    def test_reset_clears_state(self):
        ctx = _context()
        ctx.variable_name("x")
        ctx.provide_function("f", "def {{FUNCTION_NAME}}():\n  pass\n")
        ctx.reset()
        assert ctx.definitions.values() == []
        assert ctx.distinct_name("f") == "f"
