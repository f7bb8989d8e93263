"""Per-language code emitters for block programs."""

from __future__ import annotations

import importlib

from ._base import BaseGenerator
from .python import PythonGenerator

# Lazy imports to avoid loading every emitter at startup
_GENERATOR_CLASSES: dict[str, str] = {
    "python": "python.PythonGenerator",
    "lua": "lua.LuaGenerator",
    "php": "php.PhpGenerator",
}


def get_generator(language: str) -> BaseGenerator:
    """Instantiate the code emitter for *language*.

    Raises ``ValueError`` if *language* has no registered emitter.
    """
    spec = _GENERATOR_CLASSES.get(language)
    if spec is None:
        raise ValueError(f"Unsupported language for code generation: {language}")
    module_name, class_name = spec.split(".")
    mod = importlib.import_module(f".{module_name}", package=__package__)
    cls = getattr(mod, class_name)
    return cls()


SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(_GENERATOR_CLASSES.keys())

__all__ = [
    "BaseGenerator",
    "PythonGenerator",
    "get_generator",
    "SUPPORTED_LANGUAGES",
]
