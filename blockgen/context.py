"""Generation context — the per-pass rendering engine.

A :class:`GenerationContext` is created for exactly one generation pass. It
owns every piece of mutable state the pass needs (name table, definitions,
helper names, loop stack, depth counter) and is handed to each rendering
rule, so independent passes never share state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional, Union

from . import constants
from .blocks import Block, Workspace
from .config import GeneratorConfig
from .errors import GenerationError, StructureTooDeepError
from .names import NameType
from .order import needs_parens
from .registry import DefinitionRegistry

if TYPE_CHECKING:
    from .generators._base import BaseGenerator

logger = logging.getLogger(__name__)

ValueCode = tuple[str, int]
RenderResult = Union[str, ValueCode]


class GenerationContext:
    def __init__(
        self,
        generator: BaseGenerator,
        config: Optional[GeneratorConfig] = None,
        workspace: Optional[Workspace] = None,
    ):
        self.generator = generator
        self.config = config or GeneratorConfig()
        self.workspace = workspace or Workspace()
        self.indent = (
            self.config.indent if self.config.indent is not None else generator.INDENT
        )
        self.names = generator.create_name_database()
        self.definitions = DefinitionRegistry()
        self._depth = 0
        self._active: set[int] = set()
        self._loop_stack: list[Block] = []
        self._continued: set[int] = set()

    def __enter__(self) -> GenerationContext:
        return self

    def __exit__(self, *exc_info) -> None:
        self.reset()

    def reset(self) -> None:
        """Drop every table accumulated during the pass."""
        self.names.reset()
        self.definitions.reset()
        self._depth = 0
        self._active = set()
        self._loop_stack = []
        self._continued = set()

    # ── block rendering ─────────────────────────────────────────

    def block_to_code(self, block: Optional[Block], this_only: bool = False) -> RenderResult:
        """Render *block*; statement blocks also render their ``next`` chain.

        Returns ``(code, order)`` for value blocks and text for statements.
        """
        if block is None:
            return ""
        if this_only:
            return self._render_single(block)
        rule = self.generator.rules.lookup(block.type) if block.enabled else None
        if rule is not None and rule.is_value:
            return self._render_single(block)
        return self._render_chain(block)

    def _render_chain(self, head: Block) -> str:
        parts: list[str] = []
        seen: set[int] = set()
        block: Optional[Block] = head
        while block is not None:
            if id(block) in seen:
                raise StructureTooDeepError(f"Cyclic statement chain at block '{block.id}'")
            seen.add(id(block))
            code = self._render_single(block)
            if isinstance(code, tuple):
                raise GenerationError(
                    f"Value block '{block.type}' cannot appear in a statement chain"
                )
            parts.append(code)
            block = block.get_next()
        return "".join(parts)

    def _render_single(self, block: Block) -> RenderResult:
        if not block.enabled:
            return ""
        if id(block) in self._active:
            raise StructureTooDeepError(f"Block '{block.id}' contains itself")
        if self._depth >= self.config.max_depth:
            raise StructureTooDeepError(
                f"Block structure nested deeper than {self.config.max_depth} levels"
            )
        rule = self.generator.rules.lookup(block.type)
        self._depth += 1
        self._active.add(id(block))
        try:
            result = rule.handler(block, self)
        finally:
            self._depth -= 1
            self._active.discard(id(block))

        if rule.is_value:
            if not isinstance(result, tuple):
                raise GenerationError(f"Value rule for '{block.type}' must return (code, order)")
            return result
        if result is None:
            return ""
        if isinstance(result, tuple):
            raise GenerationError(f"Statement rule for '{block.type}' returned a value")
        code = result
        if not rule.suppress_prefix_suffix:
            if self.config.statement_prefix:
                code = self.inject_statement(self.config.statement_prefix, block) + code
            if self.config.statement_suffix:
                code = code + self.inject_statement(self.config.statement_suffix, block)
        code = _one_trailing_newline(code)
        return self.comment_code(block) + code

    def value_to_code(self, block: Block, name: str, order: int, strict: bool = False) -> str:
        """Render the value socket *name* for a position requiring *order*.

        Returns ``""`` when nothing is plugged in; each rule picks its own
        fallback literal. *strict* marks the operand position as intolerant
        of a child at the same tier.
        """
        target = block.value_input(name)
        if target is None:
            return ""
        result = self.block_to_code(target, this_only=True)
        if result == "":
            return ""
        if not isinstance(result, tuple):
            raise GenerationError(
                f"Socket '{name}' of '{block.type}' holds statement block '{target.type}'"
            )
        code, inner_order = result
        if not code:
            return ""
        if needs_parens(inner_order, order, strict):
            code = f"({code})"
        return code

    def statement_to_code(self, block: Block, name: str) -> str:
        """Render the statement socket *name*, indented one unit."""
        code = self.block_to_code(block.statement_input(name))
        if isinstance(code, tuple):
            raise GenerationError(f"Socket '{name}' of '{block.type}' holds a value block")
        if code:
            code = self.prefix_lines(code, self.indent)
        return code

    # ── text helpers ────────────────────────────────────────────

    @staticmethod
    def prefix_lines(text: str, prefix: str) -> str:
        """Prefix every line of *text*, leaving a trailing newline alone."""
        if not text:
            return text
        body, trailing = (text[:-1], "\n") if text.endswith("\n") else (text, "")
        return prefix + body.replace("\n", "\n" + prefix) + trailing

    def inject_id(self, snippet: str, block: Block) -> str:
        return snippet.replace(constants.BLOCK_ID_TOKEN, self.generator.quote(block.id))

    def inject_statement(self, snippet: str, block: Block) -> str:
        return _one_trailing_newline(self.inject_id(snippet, block))

    def indented_injection(self, snippet: str, block: Block) -> str:
        """*snippet* with the block id injected, as one indented body line."""
        if not snippet:
            return ""
        return self.prefix_lines(self.inject_statement(snippet, block), self.indent)

    def add_loop_trap(self, branch: str, block: Block) -> str:
        """Inject the loop trap and statement hooks into a loop body."""
        suppressed = self.generator.rules.lookup(block.type).suppress_prefix_suffix
        if self.config.infinite_loop_trap:
            branch = self.indented_injection(self.config.infinite_loop_trap, block) + branch
        if self.config.statement_suffix and not suppressed:
            branch = self.indented_injection(self.config.statement_suffix, block) + branch
        if self.config.statement_prefix and not suppressed:
            branch = branch + self.indented_injection(self.config.statement_prefix, block)
        return branch

    def comment_code(self, block: Block) -> str:
        """Comment lines for *block* and the value blocks nested in it."""
        if not self.config.emit_comments:
            return ""
        comments: list[str] = []
        if block.comment:
            comments.append(block.comment)
        for child in block.values.values():
            if child is None:
                continue
            if child.comment:
                comments.append(child.comment)
            comments.extend(
                nested.comment
                for nested in child.descendants()
                if nested.comment
            )
        if not comments:
            return ""
        text = "\n".join(comments) + "\n"
        return self.prefix_lines(text, self.generator.COMMENT_PREFIX)

    # ── names and definitions ───────────────────────────────────

    def variable_name(self, name: str) -> str:
        return self.names.get_name(name, NameType.VARIABLE)

    def procedure_name(self, name: str) -> str:
        return self.names.get_name(name, NameType.PROCEDURE)

    def developer_variable_name(self, name: str) -> str:
        return self.names.get_name(name, NameType.DEVELOPER_VARIABLE)

    def distinct_name(self, base: str, name_type: NameType = NameType.VARIABLE) -> str:
        return self.names.get_distinct_name(base, name_type)

    def provide_function(self, key: str, template: str) -> str:
        return self.definitions.provide(key, template, self.names, self.indent)

    def add_definition(self, key: str, code: str) -> None:
        self.definitions.add(key, code)

    # ── loops ───────────────────────────────────────────────────

    @contextmanager
    def loop_scope(self, block: Block) -> Iterator[None]:
        self._loop_stack.append(block)
        try:
            yield
        finally:
            self._loop_stack.pop()

    def enclosing_loop(self) -> Optional[Block]:
        return self._loop_stack[-1] if self._loop_stack else None

    def mark_continue(self) -> None:
        """Record that the innermost loop body skips to its next iteration."""
        loop = self.enclosing_loop()
        if loop is not None:
            self._continued.add(id(loop))

    def loop_continued(self, block: Block) -> bool:
        return id(block) in self._continued


def _one_trailing_newline(code: str) -> str:
    if not code.strip():
        return ""
    return code.rstrip("\n") + "\n"
