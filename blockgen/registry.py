"""Definitions table and helper-function registry for one generation pass."""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass, field

from . import constants
from .names import NameDatabase, NameType

logger = logging.getLogger(__name__)

_TWO_SPACE_INDENT = re.compile(r"^((?:  )+)", re.MULTILINE)


def reindent(code: str, indent: str) -> str:
    """Rewrite leading two-space indent units of *code* as *indent*."""
    if indent == "  ":
        return code
    return _TWO_SPACE_INDENT.sub(lambda m: indent * (len(m.group(1)) // 2), code)


@dataclass
class DefinitionRegistry:
    """Ordered definitions emitted ahead of the main program body.

    Insertion order is first-request order, so the assembled program is
    deterministic. Helper functions are keyed by their logical key; user
    procedures are keyed with :data:`~blockgen.constants.PROCEDURE_DEFINITION_PREFIX`.
    """

    # definition key → rendered source
    definitions: dict[str, str] = field(default_factory=dict)
    # helper logical key → allocated function name
    function_names: dict[str, str] = field(default_factory=dict)

    def add(self, key: str, code: str) -> None:
        self.definitions[key] = code

    def provide(
        self,
        key: str,
        template: str,
        names: NameDatabase,
        indent: str = constants.DEFAULT_INDENT,
    ) -> str:
        """Register helper *template* once per pass and return its name.

        *template* is written with two-space indentation and uses
        :data:`~blockgen.constants.FUNCTION_NAME_PLACEHOLDER` wherever the
        function's own name appears.
        """
        if key in self.function_names:
            return self.function_names[key]
        function_name = names.get_distinct_name(key, NameType.PROCEDURE)
        code = textwrap.dedent(template).strip("\n")
        code = code.replace(constants.FUNCTION_NAME_PLACEHOLDER, function_name)
        self.function_names[key] = function_name
        self.definitions[key] = reindent(code, indent) + "\n"
        logger.debug("Provided helper %s as %s", key, function_name)
        return function_name

    def values(self) -> list[str]:
        return list(self.definitions.values())

    def items(self) -> list[tuple[str, str]]:
        return list(self.definitions.items())

    def reset(self) -> None:
        self.definitions = {}
        self.function_names = {}
