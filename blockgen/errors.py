"""Generation error taxonomy."""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for every failure raised during a generation pass."""


class UnsupportedOperationError(GenerationError, ValueError):
    """An operator / enum field value has no entry in the operator table."""

    def __init__(self, kind: str, value: object):
        super().__init__(f"Unsupported {kind}: {value!r}")
        self.kind = kind
        self.value = value


class UnknownBlockTypeError(GenerationError, ValueError):
    """No rendering rule is registered for a block type."""

    def __init__(self, language: str, block_type: str):
        super().__init__(f"No {language} rule for block type '{block_type}'")
        self.language = language
        self.block_type = block_type


class DuplicateRuleError(GenerationError, ValueError):
    """A block type was registered twice without an explicit alias."""


class StructureTooDeepError(GenerationError):
    """The block structure is cyclic or nested beyond the configured depth."""
