"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

LANGUAGE_PYTHON = "python"
LANGUAGE_LUA = "lua"
LANGUAGE_PHP = "php"

# Substituted with the allocated name when a helper function is provided.
FUNCTION_NAME_PLACEHOLDER = "{{FUNCTION_NAME}}"

# Substituted with the quoted block id in prefix / suffix / loop-trap snippets.
BLOCK_ID_TOKEN = "%1"

# User procedures are keyed with this prefix in the definitions table so they
# never collide with helper-function keys.
PROCEDURE_DEFINITION_PREFIX = "%"
VARIABLES_DEFINITION_KEY = "variables"
IMPORT_DEFINITION_PREFIX = "import_"

DEFAULT_INDENT = "  "
DEFAULT_MAX_DEPTH = 100

PROCEDURE_PARAMS_KEY = "params"
VARIABLE_FIELD = "VAR"

DEFAULT_LOOP_VARIABLE = "count"
