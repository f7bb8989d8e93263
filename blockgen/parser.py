"""Tree-Sitter Parsing Layer — re-parses generated source for syntax checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from . import constants

# Text tree-sitter needs ahead of generated output for the grammar to accept it.
SOURCE_PREAMBLES: dict[str, str] = {
    constants.LANGUAGE_PHP: "<?php\n",
}


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


class Parser:
    """Parses generated programs, adding any preamble the grammar requires."""

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: str, language: str):
        preamble = SOURCE_PREAMBLES.get(language, "")
        parser = self._factory.get_parser(language)
        return parser.parse((preamble + source).encode("utf-8"))

    @staticmethod
    def preamble_lines(language: str) -> int:
        return SOURCE_PREAMBLES.get(language, "").count("\n")


def iter_error_nodes(node) -> Iterator:
    """Yield every ERROR or MISSING node under *node*, depth-first."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            yield current
            continue
        stack.extend(reversed(current.children))
