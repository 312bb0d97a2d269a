"""
Constants and enums for the token catalog.

No magic strings - use enums and named defaults for constrained values.
"""

from enum import Enum


class TokenTier(str, Enum):
    """
    Value tier of a design token.

    Primitives hold authored values, semantics point at other tokens.
    """

    PRIMITIVE = "primitive"
    SEMANTIC = "semantic"


class ResolutionIssue(str, Enum):
    """Why a semantic token could not be resolved."""

    MISSING = "missing"  # A hop points at a path that does not exist
    CYCLE = "cycle"  # The chain revisits a path
    DEPTH = "depth"  # The chain exceeded MAX_REFERENCE_DEPTH


# Source file suffixes accepted by the parser, in lookup order
JSON_SUFFIXES: tuple[str, ...] = (".json",)
YAML_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")
TOKEN_FILE_SUFFIXES: tuple[str, ...] = JSON_SUFFIXES + YAML_SUFFIXES

# Secondary suffix stripped from category names ("colors.tokens.json")
TOKENS_SUFFIX = ".tokens"

# Directories probed (in order) when no tokens path is configured
TOKEN_DIR_CANDIDATES: tuple[str, ...] = ("tokens", "design-tokens", "style-dictionary")

# Safety net for reference walks, independent of cycle detection
MAX_REFERENCE_DEPTH = 32

# Corpus discovery defaults
DEFAULT_CORPUS_INCLUDE: tuple[str, ...] = ("**/*.art.vue", "**/*.vue", "**/*.css")
DEFAULT_CORPUS_EXCLUDE: tuple[str, ...] = ("node_modules/**", "dist/**")

# Usage index cache lifetime in seconds
DEFAULT_USAGE_CACHE_TTL = 5.0

# Custom property prefix used to derive usage signatures
CSS_VAR_PREFIX = "--"

# Environment variable prefix for server configuration
ENV_PREFIX = "CHUK_TOKENS_"


class ErrorMessages:
    """Standardized error messages."""

    NO_TOKENS_PATH = (
        "No tokens path configured and none auto-detected. "
        "Looked for: tokens/, design-tokens/, style-dictionary/."
    )
    TOKEN_NOT_FOUND = "Token '{path}' not found."
    DUPLICATE_PATH = "Token '{path}' already exists."
    SEMANTIC_WITHOUT_REFERENCE = "Semantic token '{path}' must define a reference."
    PRIMITIVE_WITH_REFERENCE = "Primitive token '{path}' cannot carry a reference."
    PRIMITIVE_WITHOUT_VALUE = "Primitive token '{path}' must define a value."
    PATH_TOO_SHORT = "Token path '{path}' must include at least one category."
    PATH_EMPTY_SEGMENT = "Token path '{path}' contains an empty segment."
    UNKNOWN_TIER = "Unknown tier '{tier}' at '{path}'."


class SuccessMessages:
    """Standardized success messages."""

    TOKEN_CREATED = "Created token '{path}'."
    TOKEN_UPDATED = "Updated token '{path}'."
    TOKEN_DELETED = "Deleted token '{path}'."
    TOKENS_SAVED = "Saved tokens to {path}."
