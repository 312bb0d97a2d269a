"""
Token parser - turns token source files into a category tree.

Sources can be:
1. A directory with one file per top-level category (colors.json, ...)
2. A single file holding arbitrarily nested categories

JSON and YAML are both accepted. An object is a token leaf iff it has a
``value`` key holding a string or number; every other object is a
container. Containers that contribute no tokens are dropped.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from chuk_mcp_tokens.catalog.tree import flatten, format_category_name
from chuk_mcp_tokens.constants import (
    JSON_SUFFIXES,
    TOKEN_FILE_SUFFIXES,
    TOKENS_SUFFIX,
    ErrorMessages,
    TokenTier,
)
from chuk_mcp_tokens.errors import ParseError, ParseWarning
from chuk_mcp_tokens.models.token import DesignToken, TokenCategory, parse_alias

logger = logging.getLogger(__name__)


def is_token_value(value: Any) -> bool:
    """True for strings and numbers (bool is excluded)."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def is_token_leaf(value: Any) -> bool:
    """True if the object is a token leaf rather than a container."""
    return isinstance(value, Mapping) and "value" in value and is_token_value(value["value"])


def category_key_for_file(path: Path) -> str:
    """Category key for a file in directory mode (``colors.tokens.json`` -> ``colors``)."""
    name = path.name
    for suffix in TOKEN_FILE_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    if name.endswith(TOKENS_SUFFIX):
        name = name[: -len(TOKENS_SUFFIX)]
    return name


@dataclass
class ParseResult:
    """Output of a parse: the tree, the flat map and any recovered problems."""

    categories: list[TokenCategory]
    token_map: dict[str, DesignToken]
    warnings: list[ParseWarning] = field(default_factory=list)


class TokenParser:
    """
    Parses token sources into categories and a flat path map.

    Directory loads tolerate bad files: each one is skipped and recorded
    as a warning. Single-file loads raise ParseError.
    """

    def parse(self, source: Path) -> ParseResult:
        """
        Parse a token source.

        Args:
            source: A token directory or a single token file

        Returns:
            ParseResult with categories, token map and warnings
        """
        if not source.exists():
            raise ParseError(str(source), f"Token source not found: {source}")

        if source.is_dir():
            return self._parse_directory(source)

        data = self.load_file(source)
        return self.parse_data(data, origin=str(source))

    def parse_data(self, data: Any, origin: str = "<memory>") -> ParseResult:
        """
        Parse an in-memory nested token object (single-file mode).

        Top-level leaves are skipped: every token must live in a category.
        """
        if not isinstance(data, Mapping):
            raise ParseError(origin, "Token source must be an object at the top level")

        warnings: list[ParseWarning] = []
        categories: list[TokenCategory] = []
        for key, value in data.items():
            key = str(key)
            if is_token_leaf(value):
                logger.debug("Skipping top-level token '%s' in %s", key, origin)
                continue
            if isinstance(value, Mapping):
                category = self._build_category(key, value, key, warnings)
                if category is not None:
                    categories.append(category)

        return self._result(categories, warnings)

    def load_file(self, path: Path) -> Any:
        """Read a JSON or YAML token file."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(str(path), f"Cannot read {path}: {e}") from e

        if path.suffix in JSON_SUFFIXES:
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ParseError(str(path), f"Invalid JSON in {path}: {e}") from e

        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(str(path), f"Invalid YAML in {path}: {e}") from e

    def _parse_directory(self, directory: Path) -> ParseResult:
        """Parse one category per file, skipping files that fail."""
        warnings: list[ParseWarning] = []
        categories: list[TokenCategory] = []

        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix not in TOKEN_FILE_SUFFIXES:
                continue

            key = category_key_for_file(path)
            if any(c.key == key for c in categories):
                message = f"Category '{key}' is already defined; skipping {path.name}"
                logger.warning(message)
                warnings.append(ParseWarning(path=str(path), message=message))
                continue

            try:
                data = self.load_file(path)
                if not isinstance(data, Mapping):
                    raise ParseError(str(path), f"Token file {path} must contain an object")
                file_warnings: list[ParseWarning] = []
                category = self._build_category(key, data, key, file_warnings)
            except ParseError as e:
                logger.warning("Skipping token file %s: %s", path, e.message)
                warnings.append(ParseWarning(path=e.path, message=e.message))
                continue

            warnings.extend(file_warnings)
            if category is not None:
                categories.append(category)

        return self._result(categories, warnings)

    def _build_category(
        self,
        key: str,
        data: Mapping[Any, Any],
        prefix: str,
        warnings: list[ParseWarning],
    ) -> TokenCategory | None:
        """Build a category from a container, or None if it holds no tokens."""
        tokens: dict[str, DesignToken] = {}
        subcategories: list[TokenCategory] = []

        for child_key, value in data.items():
            child_key = str(child_key)
            child_path = f"{prefix}.{child_key}"
            if is_token_leaf(value):
                token = self._parse_leaf(child_path, value, warnings)
                if token is not None:
                    tokens[child_key] = token
            elif isinstance(value, Mapping):
                sub = self._build_category(child_key, value, child_path, warnings)
                if sub is not None:
                    subcategories.append(sub)

        if not tokens and not subcategories:
            return None

        return TokenCategory(
            name=format_category_name(key),
            key=key,
            tokens=tokens,
            subcategories=subcategories or None,
        )

    def _parse_leaf(
        self,
        path: str,
        raw: Mapping[str, Any],
        warnings: list[ParseWarning],
    ) -> DesignToken | None:
        """Parse a leaf, applying the tier rules."""
        value = raw["value"]
        reference = raw.get("reference", raw.get("$reference"))
        if reference is not None and not isinstance(reference, str):
            raise ParseError(path, f"Reference at '{path}' must be a string")

        alias = parse_alias(value)
        tier_raw = raw.get("tier", raw.get("$tier"))

        if tier_raw is None:
            tier = TokenTier.SEMANTIC if (reference or alias) else TokenTier.PRIMITIVE
        else:
            try:
                tier = TokenTier(str(tier_raw).lower())
            except ValueError as e:
                raise ParseError(
                    path, ErrorMessages.UNKNOWN_TIER.format(tier=tier_raw, path=path)
                ) from e

        if tier == TokenTier.SEMANTIC:
            reference = reference or alias
            if not reference:
                warnings.append(
                    ParseWarning(path, ErrorMessages.SEMANTIC_WITHOUT_REFERENCE.format(path=path))
                )
                logger.warning("Skipping semantic token without reference: %s", path)
                return None
        elif reference:
            warnings.append(
                ParseWarning(
                    path,
                    ErrorMessages.PRIMITIVE_WITH_REFERENCE.format(path=path)
                    + " The reference was ignored.",
                )
            )
            logger.warning("Ignoring reference on primitive token: %s", path)
            reference = None

        token_type = raw.get("type", raw.get("$type"))
        description = raw.get("description", raw.get("$description"))

        return DesignToken(
            value=value,
            type=token_type if isinstance(token_type, str) else None,
            description=description if isinstance(description, str) else None,
            tier=tier,
            reference=reference,
        )

    def _result(self, categories: list[TokenCategory], warnings: list[ParseWarning]) -> ParseResult:
        return ParseResult(categories=categories, token_map=flatten(categories), warnings=warnings)
