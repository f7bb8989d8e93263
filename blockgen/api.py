"""Composable API functions for block-program code generation.

Each function corresponds to a CLI workflow (generate, --check) but is
callable programmatically without argparse.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel

from .blocks import Block, Workspace
from .config import GeneratorConfig
from .generators import get_generator
from .parser import Parser, ParserFactory, TreeSitterParserFactory, iter_error_nodes
from . import constants

logger = logging.getLogger(__name__)

WorkspaceSource = Union[Workspace, dict, str, Path]


class SyntaxIssue(BaseModel):
    """One parse error in generated source (1-based line, 0-based column)."""

    line: int
    column: int
    kind: str
    text: str = ""

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.kind} {self.text!r}"


class SyntaxReport(BaseModel):
    language: str
    issues: list[SyntaxIssue] = []

    @property
    def ok(self) -> bool:
        return not self.issues


def load_workspace(source: WorkspaceSource) -> Workspace:
    """Build a :class:`Workspace` from a model, a dict, JSON text or a file path.

    A single block document (one with a ``type`` key) is wrapped in a
    workspace of its own.

    Raises:
        pydantic.ValidationError: if the document does not describe blocks.
    """
    if isinstance(source, Workspace):
        return source
    if isinstance(source, Path):
        logger.info("Loading workspace from %s", source)
        source = source.read_text(encoding="utf-8")
    if isinstance(source, str):
        source = json.loads(source)
    if "type" in source:
        return Workspace(blocks=[Block.model_validate(source)])
    return Workspace.model_validate(source)


def generate_code(
    source: WorkspaceSource,
    language: str = constants.LANGUAGE_PYTHON,
    config: Optional[GeneratorConfig] = None,
) -> str:
    """Generate a program in *language* from a workspace.

    Args:
        source: Workspace model, dict, JSON text or path to a JSON file.
        language: Target language name ("python", "lua" or "php").
        config: Statement hooks, indentation and depth limit.

    Returns:
        The generated program text.
    """
    workspace = load_workspace(source)
    generator = get_generator(language)
    return generator.generate(workspace, config)


def generate_block_code(
    root: Union[Block, dict[str, Any]],
    language: str = constants.LANGUAGE_PYTHON,
    config: Optional[GeneratorConfig] = None,
) -> str:
    """Generate a program from a single root block and the chain after it."""
    block = root if isinstance(root, Block) else Block.model_validate(root)
    return get_generator(language).generate_block(block, config)


def check_syntax(
    source: str,
    language: str,
    parser_factory: Optional[ParserFactory] = None,
) -> SyntaxReport:
    """Parse generated *source* with tree-sitter and report error nodes.

    Args:
        source: Generated program text.
        language: Language the text was generated for.
        parser_factory: Parser provider; defaults to tree-sitter-language-pack.

    Returns:
        A SyntaxReport whose ``issues`` list is empty for well-formed source.
    """
    parser = Parser(parser_factory or TreeSitterParserFactory())
    tree = parser.parse(source, language)
    offset = parser.preamble_lines(language)
    issues = [
        SyntaxIssue(
            line=node.start_point[0] - offset + 1,
            column=node.start_point[1],
            kind="missing" if node.is_missing else "error",
            text=node.text.decode("utf-8", errors="replace") if node.text else "",
        )
        for node in iter_error_nodes(tree.root_node)
    ]
    if issues:
        logger.warning("%d syntax issue(s) in generated %s", len(issues), language)
    return SyntaxReport(language=language, issues=issues)
