"""Block-graph data model — read-only view of a visual program."""

from __future__ import annotations

import uuid
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from . import constants

FieldValue = Union[bool, int, float, str]


def _new_block_id() -> str:
    return uuid.uuid4().hex[:20]


class Block(BaseModel):
    """One node of the visual program tree.

    ``values`` maps value sockets to a child expression block and
    ``statements`` maps statement sockets to the head of a block chain. A
    socket that exists on the block but has nothing plugged in is present
    with a ``None`` value.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str
    id: str = Field(default_factory=_new_block_id)
    fields: dict[str, FieldValue] = {}
    values: dict[str, Optional[Block]] = {}
    statements: dict[str, Optional[Block]] = {}
    next_block: Optional[Block] = Field(default=None, alias="next")
    comment: Optional[str] = None
    enabled: bool = True
    extra_state: dict[str, Any] = {}

    _workspace: Optional[Workspace] = PrivateAttr(default=None)

    # ── collaborator contract ───────────────────────────────────

    def field_value(self, name: str) -> Any:
        return self.fields.get(name)

    def value_input(self, name: str) -> Optional[Block]:
        return self.values.get(name)

    def statement_input(self, name: str) -> Optional[Block]:
        return self.statements.get(name)

    def get_next(self) -> Optional[Block]:
        return self.next_block

    def has_input(self, name: str) -> bool:
        return name in self.values or name in self.statements

    def get_vars(self) -> list[str]:
        """Parameter names declared by a procedure definition or call."""
        return list(self.extra_state.get(constants.PROCEDURE_PARAMS_KEY, []))

    @property
    def workspace(self) -> Optional[Workspace]:
        return self._workspace

    # ── traversal ───────────────────────────────────────────────

    def children(self) -> list[Block]:
        """Directly nested blocks (value children and statement chain heads)."""
        nested = [b for b in self.values.values() if b is not None]
        nested.extend(b for b in self.statements.values() if b is not None)
        return nested

    def descendants(self) -> Iterator[Block]:
        """Every block nested inside this one, depth-first.

        Follows ``next`` links of nested chains but not the receiver's own.
        """
        seen: set[int] = {id(self)}
        stack = list(reversed(self.children()))
        while stack:
            block = stack.pop()
            if id(block) in seen:
                continue
            seen.add(id(block))
            yield block
            pending = list(block.children())
            if block.next_block is not None:
                pending.append(block.next_block)
            stack.extend(reversed(pending))


class Workspace(BaseModel):
    """Top-level container: top blocks plus the workspace variable list."""

    variables: list[str] = []
    developer_variables: list[str] = []
    blocks: list[Block] = []

    def model_post_init(self, __context: Any) -> None:
        for block in self.all_blocks():
            block._workspace = self

    def top_blocks(self) -> list[Block]:
        return list(self.blocks)

    def all_blocks(self) -> Iterator[Block]:
        seen: set[int] = set()
        for top in self.blocks:
            block: Optional[Block] = top
            while block is not None and id(block) not in seen:
                seen.add(id(block))
                yield block
                for nested in block.descendants():
                    if id(nested) not in seen:
                        seen.add(id(nested))
                        yield nested
                block = block.next_block

    def all_used_variables(self) -> list[str]:
        """Declared variables, then every variable referenced by a block."""
        names: list[str] = []
        seen: set[str] = set()

        def _add(name: Any) -> None:
            if not isinstance(name, str) or not name:
                return
            key = name.lower()
            if key not in seen:
                seen.add(key)
                names.append(name)

        for name in self.variables:
            _add(name)
        for block in self.all_blocks():
            _add(block.field_value(constants.VARIABLE_FIELD))
            if block.type.startswith("procedures_def"):
                for param in block.get_vars():
                    _add(param)
        return names


Block.model_rebuild()
Workspace.model_rebuild()
