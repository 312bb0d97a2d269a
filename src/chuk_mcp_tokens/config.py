"""
Server configuration.

Defaults live in constants.py; each setting can be overridden with a
CHUK_TOKENS_* environment variable or a CLI flag.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from chuk_mcp_tokens.constants import (
    DEFAULT_CORPUS_EXCLUDE,
    DEFAULT_CORPUS_INCLUDE,
    DEFAULT_USAGE_CACHE_TTL,
    ENV_PREFIX,
    TOKEN_DIR_CANDIDATES,
)

logger = logging.getLogger(__name__)


def _split_globs(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class ServerConfig(BaseModel):
    """Settings for the token server."""

    project_root: Path = Field(default_factory=Path.cwd, description="Project root")
    tokens_path: Path | None = Field(
        None, description="Token directory or file (auto-detected when unset)"
    )
    corpus_root: Path | None = Field(
        None, description="Root of component sources (default: project root)"
    )
    corpus_include: list[str] = Field(default_factory=lambda: list(DEFAULT_CORPUS_INCLUDE))
    corpus_exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_CORPUS_EXCLUDE))
    usage_cache_ttl: float = Field(DEFAULT_USAGE_CACHE_TTL, ge=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from CHUK_TOKENS_* environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if root := env.get(f"{ENV_PREFIX}PROJECT_ROOT"):
            values["project_root"] = Path(root)
        if tokens := env.get(f"{ENV_PREFIX}PATH"):
            values["tokens_path"] = Path(tokens)
        if corpus := env.get(f"{ENV_PREFIX}CORPUS_ROOT"):
            values["corpus_root"] = Path(corpus)
        if include := env.get(f"{ENV_PREFIX}CORPUS_INCLUDE"):
            values["corpus_include"] = _split_globs(include)
        if exclude := env.get(f"{ENV_PREFIX}CORPUS_EXCLUDE"):
            values["corpus_exclude"] = _split_globs(exclude)
        if ttl := env.get(f"{ENV_PREFIX}USAGE_CACHE_TTL"):
            values["usage_cache_ttl"] = float(ttl)

        return cls.model_validate(values)

    def resolve_tokens_path(self) -> Path | None:
        """
        Locate the token source.

        An explicit tokens_path is resolved against the project root;
        otherwise the first existing candidate directory is used.
        """
        if self.tokens_path is not None:
            return self.project_root / self.tokens_path

        for name in TOKEN_DIR_CANDIDATES:
            candidate = self.project_root / name
            if candidate.exists():
                logger.debug("Auto-detected tokens at %s", candidate)
                return candidate
        return None

    def resolve_corpus_root(self) -> Path:
        if self.corpus_root is None:
            return self.project_root
        return self.project_root / self.corpus_root
