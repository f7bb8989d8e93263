"""BaseGenerator — language-agnostic block tree → source text rendering."""

from __future__ import annotations

import logging
import math
import re
from enum import IntEnum
from typing import Any, Optional

from .. import constants
from ..blocks import Block, Workspace
from ..config import GeneratorConfig
from ..context import GenerationContext, ValueCode
from ..errors import UnsupportedOperationError
from ..names import NameDatabase, NameType
from ..operators import (
    ArithmeticOp,
    Associativity,
    CompareOp,
    FlowStatement,
    LogicOp,
    LoopMode,
    check_exhaustive,
)
from ..rules import RuleTable

logger = logging.getLogger(__name__)

_LEADING_BLANK_LINES = re.compile(r"^\s+\n")
_TRAILING_BLANK_LINES = re.compile(r"\n\s+$")
_TRAILING_SPACES = re.compile(r"[ \t]+\n")
_NAMED_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class BaseGenerator:
    """Base class for per-language code emitters.

    Subclasses set the order table and the literal / syntax constants below,
    fill the operator tables, and register language-specific rules on top of
    the shared ones in ``__init__``.
    """

    # ── overridable constants ────────────────────────────────────

    LANGUAGE: str = ""
    ORDER: type[IntEnum] = IntEnum  # replaced by every subclass
    INDENT: str = constants.DEFAULT_INDENT
    PASS: str = ""
    COMMENT_PREFIX: str = "# "
    STATEMENT_END: str = "\n"
    VARIABLE_PREFIX: str = ""
    RESERVED_WORDS: frozenset[str] = frozenset()
    # Name types whose identifiers the target compares case-insensitively.
    CASE_INSENSITIVE_NAMES: frozenset[NameType] = frozenset()

    TRUE_LITERAL: str = "true"
    FALSE_LITERAL: str = "false"
    NULL_LITERAL: str = "null"
    EMPTY_LIST_LITERAL: str = "[]"
    # Escape for control characters without a named escape, given the code point.
    CONTROL_ESCAPE: str = "\\{:03d}"

    IF_HEADER: str = "if {condition}:\n"
    ELSE_IF_HEADER: str = "elif {condition}:\n"
    ELSE_HEADER: str = "else:\n"
    BLOCK_END: str = ""
    WHILE_HEADER: str = "while {condition}:\n"
    BREAK_STATEMENT: str = "break"
    CONTINUE_STATEMENT: str = "continue"

    PROCEDURE_HEADER: str = "def {name}({args}):\n"
    PROCEDURE_END: str = ""
    RETURN_VALUE: str = "return {value}"
    RETURN_NOTHING: str = "return"
    # Scope declaration for outer variables inside a procedure; empty when the
    # language reads and writes outer variables without one.
    GLOBAL_DECLARATION: str = ""

    # ── operator tables (filled by subclasses) ───────────────────

    COMPARE_OPERATORS: dict[CompareOp, tuple[str, int]] = {}
    LOGIC_OPERATORS: dict[LogicOp, tuple[str, int]] = {}
    ARITHMETIC_OPERATORS: dict[ArithmeticOp, tuple[str, int, Associativity]] = {}
    NOT_OPERATOR: tuple[str, int] = ("not ", 0)
    NEGATE_OPERATOR: tuple[str, int] = ("-", 0)
    MODULO_OPERATOR: tuple[str, int] = ("%", 0)
    CALL_ORDER: int = 0
    ASSIGNMENT_ORDER: int = 99

    # ── init ─────────────────────────────────────────────────────

    def __init__(self):
        check_exhaustive(self.COMPARE_OPERATORS, CompareOp, f"{type(self).__name__}.COMPARE_OPERATORS")
        check_exhaustive(self.LOGIC_OPERATORS, LogicOp, f"{type(self).__name__}.LOGIC_OPERATORS")
        check_exhaustive(self.ARITHMETIC_OPERATORS, ArithmeticOp, f"{type(self).__name__}.ARITHMETIC_OPERATORS")
        self.rules = RuleTable(self.LANGUAGE)
        self._register_common_rules()

    def _register_common_rules(self) -> None:
        rules = self.rules
        rules.statement("controls_if", self._controls_if, suppress_prefix_suffix=True)
        rules.alias("controls_ifelse", "controls_if")
        rules.statement("controls_whileUntil", self._controls_while_until)
        rules.statement(
            "controls_flow_statements",
            self._controls_flow_statements,
            suppress_prefix_suffix=True,
        )
        rules.value("logic_compare", self._logic_compare)
        rules.value("logic_operation", self._logic_operation)
        rules.value("logic_negate", self._logic_negate)
        rules.value("logic_boolean", self._logic_boolean)
        rules.value("logic_null", self._logic_null)
        rules.value("math_arithmetic", self._math_arithmetic)
        rules.value("math_modulo", self._math_modulo)
        rules.value("text", self._text)
        rules.value("variables_get", self._variables_get)
        rules.statement("variables_set", self._variables_set)
        rules.statement("procedures_defreturn", self._procedures_defreturn)
        rules.alias("procedures_defnoreturn", "procedures_defreturn")
        rules.value("procedures_callreturn", self._procedures_callreturn)
        rules.statement("procedures_callnoreturn", self._procedures_callnoreturn)
        rules.statement("procedures_ifreturn", self._procedures_ifreturn)

    def create_name_database(self) -> NameDatabase:
        return NameDatabase(self.RESERVED_WORDS, self.VARIABLE_PREFIX, self.CASE_INSENSITIVE_NAMES)

    # ── entry points ─────────────────────────────────────────────

    def generate(self, workspace: Workspace, config: Optional[GeneratorConfig] = None) -> str:
        """Render every top block of *workspace* into one program."""
        with GenerationContext(self, config, workspace) as ctx:
            logger.info(
                "Generating %s for %d top blocks", self.LANGUAGE, len(workspace.blocks)
            )
            self.init(ctx)
            chunks: list[str] = []
            for block in workspace.top_blocks():
                code = ctx.block_to_code(block)
                if isinstance(code, tuple):
                    code = self._naked_value(ctx, block, code[0])
                if code:
                    chunks.append(code)
            code = self.finish(ctx, "\n".join(chunks))
            logger.info(
                "Generated %d %s lines (%d definitions)",
                code.count("\n"),
                self.LANGUAGE,
                len(ctx.definitions.definitions),
            )
        return _tidy(code)

    workspace_to_code = generate

    def generate_block(self, root: Block, config: Optional[GeneratorConfig] = None) -> str:
        """Render the tree rooted at *root* as a complete program."""
        return self.generate(Workspace(blocks=[root]), config)

    def init(self, ctx: GenerationContext) -> None:
        """Reserve workspace names before any rule allocates helpers."""
        ctx.names.populate(ctx.workspace.all_used_variables(), NameType.VARIABLE)
        ctx.names.populate(ctx.workspace.developer_variables, NameType.DEVELOPER_VARIABLE)
        procedures = [
            block.field_value("NAME")
            for block in ctx.workspace.all_blocks()
            if block.type in ("procedures_defreturn", "procedures_defnoreturn")
            and block.field_value("NAME")
        ]
        ctx.names.populate(procedures, NameType.PROCEDURE)

    def finish(self, ctx: GenerationContext, code: str) -> str:
        """Prepend every registered definition to the main body."""
        definitions = [d.rstrip("\n") for d in ctx.definitions.values() if d.strip()]
        if not definitions:
            return code
        return "\n\n".join(definitions) + "\n\n\n" + code

    def _naked_value(self, ctx: GenerationContext, block: Block, code: str) -> str:
        line = self.scrub_naked_value(code)
        if ctx.config.statement_prefix:
            line = ctx.inject_statement(ctx.config.statement_prefix, block) + line
        if ctx.config.statement_suffix:
            line = line + ctx.inject_statement(ctx.config.statement_suffix, block)
        return ctx.comment_code(block) + line

    def scrub_naked_value(self, line: str) -> str:
        """Turn a top-level value expression into a statement."""
        return line + "\n"

    def escape_controls(self, text: str) -> str:
        """Replace newlines and other control characters with escapes."""
        return "".join(
            _NAMED_ESCAPES.get(ch) or (self.CONTROL_ESCAPE.format(ord(ch)) if ch < " " else ch)
            for ch in text
        )

    def quote(self, text: str) -> str:
        escaped = self.escape_controls(text.replace("\\", "\\\\")).replace("'", "\\'")
        return f"'{escaped}'"

    def statement(self, code: str) -> str:
        return code + self.STATEMENT_END

    # ── shared helpers ───────────────────────────────────────────

    def _body(self, ctx: GenerationContext, code: str) -> str:
        """A compound-statement body, never empty where the grammar forbids it."""
        if code or not self.PASS:
            return code
        return ctx.indent + self.statement(self.PASS)

    def _loop_body(self, block: Block, ctx: GenerationContext) -> str:
        with ctx.loop_scope(block):
            branch = ctx.statement_to_code(block, "DO")
        branch = ctx.add_loop_trap(branch, block)
        return self._body(ctx, self._finish_loop_body(block, ctx, branch))

    def _repeat_times(self, block: Block, ctx: GenerationContext) -> str:
        """Iteration count of a repeat loop, from its field or its socket."""
        if block.field_value("TIMES") is not None:
            return self._number_literal(block.field_value("TIMES")) or "0"
        return ctx.value_to_code(block, "TIMES", self.ORDER.NONE) or "0"

    @staticmethod
    def _is_number(code: str) -> bool:
        """True for finite numeric literals; `inf` and `nan` are identifiers here."""
        try:
            return math.isfinite(float(code))
        except ValueError:
            return False

    @staticmethod
    def _parse_number(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise UnsupportedOperationError("number", value) from None

    def _number_literal(self, value: Any) -> Optional[str]:
        """Canonical text for a finite numeric field value.

        Returns ``None`` for infinities and NaN, which every language spells
        differently.
        """
        number = self._parse_number(value)
        if math.isinf(number) or math.isnan(number):
            return None
        if number == int(number) and abs(number) < 1e16:
            return str(int(number))
        return repr(number)

    def _procedure_globals(self, ctx: GenerationContext, block: Block) -> str:
        """Scope declaration for the outer variables a procedure touches."""
        if not self.GLOBAL_DECLARATION:
            return ""
        params = {p.lower() for p in block.get_vars()}
        names: list[str] = []
        seen: set[str] = set()
        for nested in block.descendants():
            var = nested.field_value(constants.VARIABLE_FIELD)
            if not isinstance(var, str) or not var:
                continue
            key = var.lower()
            if key in params or key in seen:
                continue
            seen.add(key)
            names.append(ctx.variable_name(var))
        names.extend(ctx.developer_variable_name(dev) for dev in ctx.workspace.developer_variables)
        if not names:
            return ""
        return ctx.indent + self.GLOBAL_DECLARATION.format(names=", ".join(names))

    def _finish_loop_body(self, block: Block, ctx: GenerationContext, branch: str) -> str:
        return branch

    # ── logic ────────────────────────────────────────────────────

    def _controls_if(self, block: Block, ctx: GenerationContext) -> str:
        code = ""
        if ctx.config.statement_prefix:
            code += ctx.inject_statement(ctx.config.statement_prefix, block)
        suffix = ctx.indented_injection(ctx.config.statement_suffix, block)
        n = 0
        while True:
            condition = (
                ctx.value_to_code(block, f"IF{n}", self.ORDER.NONE) or self.FALSE_LITERAL
            )
            branch = self._body(ctx, suffix + ctx.statement_to_code(block, f"DO{n}"))
            header = self.IF_HEADER if n == 0 else self.ELSE_IF_HEADER
            code += header.format(condition=condition) + branch
            n += 1
            if not block.has_input(f"IF{n}"):
                break
        if block.has_input("ELSE") or ctx.config.statement_suffix:
            branch = self._body(ctx, suffix + ctx.statement_to_code(block, "ELSE"))
            code += self.ELSE_HEADER + branch
        return code + self.BLOCK_END

    def _logic_compare(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = CompareOp.parse(block.field_value("OP"))
        operator, order = self.COMPARE_OPERATORS[op]
        a = ctx.value_to_code(block, "A", order, strict=True) or "0"
        b = ctx.value_to_code(block, "B", order, strict=True) or "0"
        return f"{a} {operator} {b}", order

    def _logic_operation(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = LogicOp.parse(block.field_value("OP"))
        operator, order = self.LOGIC_OPERATORS[op]
        a = ctx.value_to_code(block, "A", order)
        b = ctx.value_to_code(block, "B", order)
        if not a and not b:
            a = b = self.FALSE_LITERAL
        else:
            neutral = self.TRUE_LITERAL if op == LogicOp.AND else self.FALSE_LITERAL
            a = a or neutral
            b = b or neutral
        return f"{a} {operator} {b}", order

    def _logic_negate(self, block: Block, ctx: GenerationContext) -> ValueCode:
        operator, order = self.NOT_OPERATOR
        arg = ctx.value_to_code(block, "BOOL", order) or self.TRUE_LITERAL
        return operator + arg, order

    def _logic_boolean(self, block: Block, ctx: GenerationContext) -> ValueCode:
        code = self.TRUE_LITERAL if block.field_value("BOOL") == "TRUE" else self.FALSE_LITERAL
        return code, self.ORDER.ATOMIC

    def _logic_null(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return self.NULL_LITERAL, self.ORDER.ATOMIC

    # ── loops ────────────────────────────────────────────────────

    def _controls_while_until(self, block: Block, ctx: GenerationContext) -> str:
        mode = LoopMode.parse(block.field_value("MODE") or LoopMode.WHILE.value)
        if mode == LoopMode.UNTIL:
            operator, order = self.NOT_OPERATOR
            arg = ctx.value_to_code(block, "BOOL", order) or self.FALSE_LITERAL
            condition = operator + arg
        else:
            condition = ctx.value_to_code(block, "BOOL", self.ORDER.NONE) or self.FALSE_LITERAL
        return (
            self.WHILE_HEADER.format(condition=condition)
            + self._loop_body(block, ctx)
            + self.BLOCK_END
        )

    def _controls_flow_statements(self, block: Block, ctx: GenerationContext) -> str:
        flow = FlowStatement.parse(block.field_value("FLOW"))
        xfix = ""
        if ctx.config.statement_prefix:
            xfix += ctx.inject_statement(ctx.config.statement_prefix, block)
        # The suffix would never run after the jump, so it goes first.
        if ctx.config.statement_suffix:
            xfix += ctx.inject_statement(ctx.config.statement_suffix, block)
        loop = ctx.enclosing_loop()
        if loop is None:
            logger.warning("%s block '%s' is outside any loop", flow.value, block.id)
        elif ctx.config.statement_prefix:
            if not self.rules.lookup(loop.type).suppress_prefix_suffix:
                xfix += ctx.inject_statement(ctx.config.statement_prefix, loop)
        if flow == FlowStatement.BREAK:
            return xfix + self.statement(self.BREAK_STATEMENT)
        return xfix + self.statement(self.CONTINUE_STATEMENT)

    # ── math ─────────────────────────────────────────────────────

    def _math_arithmetic(self, block: Block, ctx: GenerationContext) -> ValueCode:
        op = ArithmeticOp.parse(block.field_value("OP"))
        operator, order, assoc = self.ARITHMETIC_OPERATORS[op]
        a = ctx.value_to_code(block, "A", order, strict=assoc.strict_left()) or "0"
        b = ctx.value_to_code(block, "B", order, strict=assoc.strict_right()) or "0"
        return f"{a} {operator} {b}", order

    def _math_modulo(self, block: Block, ctx: GenerationContext) -> ValueCode:
        operator, order = self.MODULO_OPERATOR
        a = ctx.value_to_code(block, "DIVIDEND", order) or "0"
        b = ctx.value_to_code(block, "DIVISOR", order, strict=True) or "0"
        return f"{a} {operator} {b}", order

    def _negate(self, arg: str) -> ValueCode:
        operator, order = self.NEGATE_OPERATOR
        if arg.startswith("-"):
            # "--x" is a decrement or a comment in some targets.
            arg = " " + arg
        return operator + arg, order

    # ── text ─────────────────────────────────────────────────────

    def _text(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return self.quote(str(block.field_value("TEXT") or "")), self.ORDER.ATOMIC

    # ── variables ────────────────────────────────────────────────

    def _variables_get(self, block: Block, ctx: GenerationContext) -> ValueCode:
        return ctx.variable_name(block.field_value("VAR")), self.ORDER.ATOMIC

    def _variables_set(self, block: Block, ctx: GenerationContext) -> str:
        value = ctx.value_to_code(block, "VALUE", self.ASSIGNMENT_ORDER) or "0"
        name = ctx.variable_name(block.field_value("VAR"))
        return self.statement(f"{name} = {value}")

    # ── procedures ───────────────────────────────────────────────

    def _procedures_defreturn(self, block: Block, ctx: GenerationContext) -> None:
        func_name = ctx.procedure_name(block.field_value("NAME"))
        globals_code = self._procedure_globals(ctx, block)
        xfix1 = ""
        if ctx.config.statement_prefix:
            xfix1 += ctx.inject_statement(ctx.config.statement_prefix, block)
        if ctx.config.statement_suffix:
            xfix1 += ctx.inject_statement(ctx.config.statement_suffix, block)
        xfix1 = ctx.prefix_lines(xfix1, ctx.indent)
        loop_trap = ctx.indented_injection(ctx.config.infinite_loop_trap, block)

        branch = ctx.statement_to_code(block, "STACK")
        return_value = ctx.value_to_code(block, "RETURN", self.ORDER.NONE)
        xfix2 = ""
        if branch and return_value:
            # The body ran; revisit this block before returning.
            xfix2 = xfix1
        if return_value:
            return_value = ctx.indent + self.statement(self.RETURN_VALUE.format(value=return_value))
        elif not (xfix1 or loop_trap or globals_code):
            branch = self._body(ctx, branch)

        args = ", ".join(ctx.variable_name(param) for param in block.get_vars())
        code = (
            self.PROCEDURE_HEADER.format(name=func_name, args=args)
            + globals_code
            + xfix1
            + loop_trap
            + branch
            + xfix2
            + return_value
            + self.PROCEDURE_END
        )
        code = ctx.comment_code(block) + code
        ctx.add_definition(constants.PROCEDURE_DEFINITION_PREFIX + func_name, code)
        return None

    def _procedures_callreturn(self, block: Block, ctx: GenerationContext) -> ValueCode:
        func_name = ctx.procedure_name(block.field_value("NAME"))
        args = [
            ctx.value_to_code(block, f"ARG{i}", self.ORDER.NONE) or self.NULL_LITERAL
            for i in range(len(block.get_vars()))
        ]
        return f"{func_name}({', '.join(args)})", self.CALL_ORDER

    def _procedures_callnoreturn(self, block: Block, ctx: GenerationContext) -> str:
        code, _ = self._procedures_callreturn(block, ctx)
        return self.statement(code)

    def _procedures_ifreturn(self, block: Block, ctx: GenerationContext) -> str:
        condition = ctx.value_to_code(block, "CONDITION", self.ORDER.NONE) or self.FALSE_LITERAL
        code = self.IF_HEADER.format(condition=condition)
        # The regular suffix is skipped when the return fires.
        code += ctx.indented_injection(ctx.config.statement_suffix, block)
        if block.has_input("VALUE"):
            value = ctx.value_to_code(block, "VALUE", self.ORDER.NONE) or self.NULL_LITERAL
            code += ctx.indent + self.statement(self.RETURN_VALUE.format(value=value))
        else:
            code += ctx.indent + self.statement(self.RETURN_NOTHING)
        return code + self.BLOCK_END


def _tidy(code: str) -> str:
    code = _LEADING_BLANK_LINES.sub("", code, count=1)
    code = _TRAILING_BLANK_LINES.sub("\n", code)
    return _TRAILING_SPACES.sub("\n", code)
