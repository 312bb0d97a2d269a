"""
Token Manager - the only mutation path for the token catalog.

Provides async operations for loading, creating, updating, deleting and
saving tokens. Canonical state is a single immutable TokenSnapshot: every
mutation builds a new snapshot and swaps the reference, so readers always
see a consistent tree and map. Writers are serialized by one lock.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from chuk_mcp_tokens.catalog.parser import (
    TokenParser,
    category_key_for_file,
    is_token_value,
    parse_alias,
)
from chuk_mcp_tokens.catalog.resolver import ReferenceResolver, find_dependents
from chuk_mcp_tokens.catalog.tree import (
    apply_token_map,
    count_tokens,
    flatten,
    insert_token,
    remove_token,
    render_source,
    replace_token,
)
from chuk_mcp_tokens.constants import (
    TOKEN_FILE_SUFFIXES,
    YAML_SUFFIXES,
    ErrorMessages,
    SuccessMessages,
    TokenTier,
)
from chuk_mcp_tokens.errors import (
    DependentsWarning,
    DuplicatePath,
    InvalidToken,
    NotFound,
    ParseWarning,
    ResolutionWarning,
)
from chuk_mcp_tokens.models.token import DesignToken, TokenCategory, TokenMeta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSnapshot:
    """One generation of the catalog. Never mutated after creation."""

    categories: tuple[TokenCategory, ...] = ()
    token_map: Mapping[str, DesignToken] = field(default_factory=dict)
    parse_warnings: tuple[ParseWarning, ...] = ()
    resolution_warnings: tuple[ResolutionWarning, ...] = ()
    generation: int = 0
    source: Path | None = None

    @property
    def meta(self) -> TokenMeta:
        return count_tokens(dict(self.token_map))

    def get(self, path: str) -> DesignToken | None:
        return self.token_map.get(path)


def validate_path(path: str) -> list[str]:
    """Split a token path, rejecting paths without a category or with empty segments."""
    segments = path.split(".")
    if len(segments) < 2:
        raise InvalidToken(path, ErrorMessages.PATH_TOO_SHORT.format(path=path))
    if any(not segment.strip() for segment in segments):
        raise InvalidToken(path, ErrorMessages.PATH_EMPTY_SEGMENT.format(path=path))
    return segments


def coerce_token(path: str, payload: DesignToken | Mapping[str, Any]) -> DesignToken:
    """
    Validate a token payload for a mutation.

    Accepts a DesignToken or a source-style mapping. Derived fields are
    dropped. Tier is taken as given; when absent it is inferred from the
    presence of a reference, like the parser does.
    """
    if isinstance(payload, DesignToken):
        data: dict[str, Any] = payload.model_dump(exclude={"resolved_value"})
    else:
        data = {k: v for k, v in payload.items() if k not in ("resolvedValue", "resolved_value")}
        for key in ("tier", "reference", "type", "description"):
            if key not in data and f"${key}" in data:
                data[key] = data.pop(f"${key}")

    value = data.get("value")
    reference = data.get("reference") or parse_alias(value)
    tier_raw = data.get("tier")
    if tier_raw is None:
        tier = TokenTier.SEMANTIC if reference else TokenTier.PRIMITIVE
    else:
        try:
            tier = TokenTier(
                tier_raw.value if isinstance(tier_raw, TokenTier) else str(tier_raw).lower()
            )
        except ValueError as e:
            raise InvalidToken(
                path, ErrorMessages.UNKNOWN_TIER.format(tier=tier_raw, path=path)
            ) from e

    if tier == TokenTier.SEMANTIC:
        if not reference:
            raise InvalidToken(path, ErrorMessages.SEMANTIC_WITHOUT_REFERENCE.format(path=path))
        if value is None:
            value = f"{{{reference}}}"
    else:
        if data.get("reference"):
            raise InvalidToken(path, ErrorMessages.PRIMITIVE_WITH_REFERENCE.format(path=path))
        reference = None
        if not is_token_value(value):
            raise InvalidToken(path, ErrorMessages.PRIMITIVE_WITHOUT_VALUE.format(path=path))

    data.update(value=value, tier=tier, reference=reference)
    try:
        return DesignToken.model_validate(data)
    except ValidationError as e:
        raise InvalidToken(path, f"Invalid token '{path}': {e}") from e


class TokenManager:
    """
    Manages the token catalog lifecycle with file persistence.

    Provides methods to load, mutate and save tokens. Mutations are
    serialized; each one is a full read-modify-write that re-resolves the
    whole map before the new snapshot is published.
    """

    def __init__(
        self,
        source: Path | None = None,
        parser: TokenParser | None = None,
        resolver: ReferenceResolver | None = None,
    ):
        """
        Initialize the manager.

        Args:
            source: Token directory or file
            parser: Parser to use (default: TokenParser)
            resolver: Resolver to use (default: ReferenceResolver)
        """
        self.source = source
        self.parser = parser or TokenParser()
        self.resolver = resolver or ReferenceResolver()
        self._snapshot = TokenSnapshot(source=source)
        self._lock = asyncio.Lock()
        self._loaded_keys: frozenset[str] = frozenset()

    @property
    def snapshot(self) -> TokenSnapshot:
        """The current catalog generation."""
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.generation > 0

    def get(self, path: str) -> DesignToken | None:
        """Get a token by path from the current snapshot."""
        return self._snapshot.get(path)

    async def load(self, source: Path | None = None) -> TokenSnapshot:
        """
        Parse and resolve a token source, replacing the current catalog.

        Args:
            source: Token directory or file (default: the configured source)

        Returns:
            The new snapshot
        """
        async with self._lock:
            source = source or self.source
            if source is None:
                raise ValueError(ErrorMessages.NO_TOKENS_PATH)

            result = await asyncio.to_thread(self.parser.parse, source)
            self.source = source
            self._loaded_keys = frozenset(c.key for c in result.categories)
            snapshot = self._commit(result.categories, parse_warnings=result.warnings)
            logger.info(
                "Loaded %d tokens from %s (%d warnings)",
                len(snapshot.token_map),
                source,
                len(snapshot.parse_warnings) + len(snapshot.resolution_warnings),
            )
            return snapshot

    async def reload(self) -> TokenSnapshot:
        """Re-read the configured source."""
        return await self.load()

    async def load_data(self, data: Mapping[str, Any]) -> TokenSnapshot:
        """Load an in-memory nested token object."""
        async with self._lock:
            result = self.parser.parse_data(data)
            return self._commit(result.categories, parse_warnings=result.warnings)

    async def create(self, path: str, token: DesignToken | Mapping[str, Any]) -> TokenSnapshot:
        """
        Create a token.

        Args:
            path: Dotted token path; missing categories are created
            token: Token payload

        Returns:
            The new snapshot

        Raises:
            DuplicatePath: A token already exists at path
            InvalidToken: The payload or path is invalid
        """
        async with self._lock:
            current = self._snapshot
            validate_path(path)
            if path in current.token_map:
                raise DuplicatePath(path, ErrorMessages.DUPLICATE_PATH.format(path=path))
            self._check_conflicts(path, current.token_map)
            new_token = coerce_token(path, token)

            categories = insert_token(list(current.categories), path, new_token)
            snapshot = self._commit(categories)
            logger.info(SuccessMessages.TOKEN_CREATED.format(path=path))
            return snapshot

    async def update(self, path: str, token: DesignToken | Mapping[str, Any]) -> TokenSnapshot:
        """
        Replace a token's payload in place. The tier may change.

        Raises:
            NotFound: No token at path
            InvalidToken: The payload is invalid
        """
        async with self._lock:
            current = self._snapshot
            if path not in current.token_map:
                raise NotFound(path, ErrorMessages.TOKEN_NOT_FOUND.format(path=path))
            new_token = coerce_token(path, token)

            categories = replace_token(list(current.categories), path, new_token)
            snapshot = self._commit(categories)
            logger.info(SuccessMessages.TOKEN_UPDATED.format(path=path))
            return snapshot

    async def delete(self, path: str) -> tuple[TokenSnapshot, DependentsWarning]:
        """
        Delete a token.

        Direct dependents are reported, not rewritten: they stay in the
        catalog with an unresolved reference.

        Returns:
            (new snapshot, dependents warning)

        Raises:
            NotFound: No token at path
        """
        async with self._lock:
            current = self._snapshot
            if path not in current.token_map:
                raise NotFound(path, ErrorMessages.TOKEN_NOT_FOUND.format(path=path))

            dependents = find_dependents(dict(current.token_map), path)
            categories = remove_token(list(current.categories), path)
            snapshot = self._commit(categories)

            if dependents:
                logger.warning("Deleted '%s' which is referenced by: %s", path, ", ".join(dependents))
            logger.info(SuccessMessages.TOKEN_DELETED.format(path=path))
            return snapshot, DependentsWarning(path=path, dependents=tuple(dependents))

    async def save(self, target: Path | None = None) -> Path:
        """
        Write the current tree back to disk in the source format.

        A directory target gets one file per top-level category; files of
        categories deleted since load are removed.

        Args:
            target: File or directory (default: the loaded source)

        Returns:
            Path written
        """
        async with self._lock:
            target = target or self.source
            if target is None:
                raise ValueError(ErrorMessages.NO_TOKENS_PATH)
            snapshot = self._snapshot
            loaded_keys = self._loaded_keys
            await asyncio.to_thread(self._write, target, snapshot, loaded_keys)
            self._loaded_keys = frozenset(c.key for c in snapshot.categories)
            logger.info(SuccessMessages.TOKENS_SAVED.format(path=target))
            return target

    def _commit(
        self,
        categories: list[TokenCategory],
        parse_warnings: list[ParseWarning] | None = None,
    ) -> TokenSnapshot:
        """Resolve, rebuild the tree and publish a new snapshot."""
        resolution = self.resolver.resolve(flatten(categories))
        resolved_categories = apply_token_map(categories, resolution.token_map)

        previous = self._snapshot
        snapshot = TokenSnapshot(
            categories=tuple(resolved_categories),
            token_map=MappingProxyType(resolution.token_map),
            parse_warnings=(
                tuple(parse_warnings) if parse_warnings is not None else previous.parse_warnings
            ),
            resolution_warnings=tuple(resolution.warnings),
            generation=previous.generation + 1,
            source=self.source,
        )
        self._snapshot = snapshot
        return snapshot

    @staticmethod
    def _check_conflicts(path: str, token_map: Mapping[str, DesignToken]) -> None:
        """A new token cannot sit on a category or below another token."""
        prefix = path + "."
        if any(existing.startswith(prefix) for existing in token_map):
            raise InvalidToken(path, f"Token path '{path}' is already a category.")
        segments = path.split(".")
        for i in range(1, len(segments)):
            parent = ".".join(segments[:i])
            if parent in token_map:
                raise InvalidToken(path, f"Token path '{path}' is nested under token '{parent}'.")

    @staticmethod
    def _write(target: Path, snapshot: TokenSnapshot, loaded_keys: frozenset[str]) -> None:
        rendered = render_source(list(snapshot.categories))

        if not target.is_dir():
            target.parent.mkdir(parents=True, exist_ok=True)
            _dump(target, rendered)
            return

        # First file per key wins, as in the parser
        existing: dict[str, Path] = {}
        for p in sorted(target.iterdir()):
            if p.is_file() and p.suffix in TOKEN_FILE_SUFFIXES:
                existing.setdefault(category_key_for_file(p), p)
        for key, data in rendered.items():
            _dump(existing.get(key, target / f"{key}.json"), data)
        for key in loaded_keys - rendered.keys():
            if key in existing:
                existing[key].unlink()


def _dump(path: Path, data: dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix in YAML_SUFFIXES:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
            f.write("\n")
