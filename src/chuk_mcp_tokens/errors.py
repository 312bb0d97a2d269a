"""
Error and warning types for the token catalog.

Errors are raised and abort the current operation without committing
anything. Warnings are plain values collected and reported to the caller;
they never abort a load or a mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from chuk_mcp_tokens.constants import ResolutionIssue


class TokenError(ValueError):
    """Base class for catalog errors scoped to one token or file."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path
        self.message = message

    @property
    def kind(self) -> str:
        """Short error kind reported to clients."""
        return type(self).__name__


class ParseError(TokenError):
    """Malformed token source. ``path`` is the offending file or key path."""


class DuplicatePath(TokenError):
    """A token already exists at the requested path."""


class NotFound(TokenError):
    """No token exists at the requested path."""


class InvalidToken(TokenError):
    """A token payload or path failed validation."""


@dataclass(frozen=True)
class ParseWarning:
    """A recoverable problem found while loading token sources."""

    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True)
class ResolutionWarning:
    """A semantic token whose reference chain could not be resolved."""

    path: str
    kind: ResolutionIssue
    message: str
    chain: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "kind": self.kind.value,
            "message": self.message,
            "chain": list(self.chain),
        }


@dataclass(frozen=True)
class DependentsWarning:
    """Tokens that referenced a deleted path directly."""

    path: str
    dependents: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.dependents)
