"""Generator configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import constants


@dataclass(frozen=True)
class GeneratorConfig:
    """Cross-cutting options for one generation pass.

    ``statement_prefix`` / ``statement_suffix`` / ``infinite_loop_trap`` are
    code snippets; ``%1`` inside them is replaced with the quoted id of the
    block being rendered. ``indent`` overrides the language's indent unit.
    """

    statement_prefix: str = ""
    statement_suffix: str = ""
    infinite_loop_trap: str = ""
    indent: Optional[str] = None
    max_depth: int = constants.DEFAULT_MAX_DEPTH
    emit_comments: bool = True
