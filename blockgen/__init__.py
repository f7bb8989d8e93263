"""blockgen — block programs to Python, Lua and PHP source."""

from .api import SyntaxReport, check_syntax, generate_block_code, generate_code, load_workspace
from .blocks import Block, Workspace
from .config import GeneratorConfig
from .errors import (
    DuplicateRuleError,
    GenerationError,
    StructureTooDeepError,
    UnknownBlockTypeError,
    UnsupportedOperationError,
)
from .generators import SUPPORTED_LANGUAGES, get_generator

__all__ = [
    "Block",
    "Workspace",
    "GeneratorConfig",
    "SyntaxReport",
    "check_syntax",
    "generate_code",
    "generate_block_code",
    "load_workspace",
    "get_generator",
    "SUPPORTED_LANGUAGES",
    "GenerationError",
    "UnsupportedOperationError",
    "UnknownBlockTypeError",
    "DuplicateRuleError",
    "StructureTooDeepError",
]
