"""
Reference resolver - resolves semantic tokens to primitive values.

Each semantic token's reference is followed through the flat token map
until a primitive is reached. Missing targets, cycles and overlong chains
leave the token unresolved and produce a ResolutionWarning; nothing here
raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from chuk_mcp_tokens.constants import MAX_REFERENCE_DEPTH, ResolutionIssue
from chuk_mcp_tokens.errors import ResolutionWarning
from chuk_mcp_tokens.models.token import DesignToken, TokenValue

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """Resolved token map plus the tokens that could not be resolved."""

    token_map: dict[str, DesignToken]
    warnings: list[ResolutionWarning] = field(default_factory=list)

    @property
    def unresolved(self) -> list[str]:
        return [w.path for w in self.warnings]


class ReferenceResolver:
    """
    Resolves reference chains over a whole token map.

    The resolver is pure: it returns a new map and never touches its input.
    Only ``value`` and ``reference`` are read, so resolving an already
    resolved map gives the same map back.
    """

    def __init__(self, max_depth: int = MAX_REFERENCE_DEPTH):
        """
        Initialize the resolver.

        Args:
            max_depth: Maximum number of hops followed for one token
        """
        self.max_depth = max_depth

    def resolve(self, token_map: dict[str, DesignToken]) -> ResolutionResult:
        """
        Resolve every semantic token in the map.

        Args:
            token_map: Flat map of token path to token

        Returns:
            ResolutionResult with the new map and any warnings
        """
        resolved: dict[str, DesignToken] = {}
        warnings: list[ResolutionWarning] = []

        for path, token in token_map.items():
            if not token.is_semantic:
                resolved[path] = token.authored()
                continue

            value, warning = self.resolve_path(token_map, path)
            if warning is not None:
                logger.warning(warning.message)
                warnings.append(warning)
            resolved[path] = token.with_resolved(value)

        return ResolutionResult(token_map=resolved, warnings=warnings)

    def resolve_path(
        self,
        token_map: dict[str, DesignToken],
        path: str,
    ) -> tuple[TokenValue | None, ResolutionWarning | None]:
        """
        Follow one token's chain to its terminal primitive.

        Returns:
            (value, None) on success, (None, warning) otherwise
        """
        chain = [path]
        current = token_map[path]

        while current.is_semantic:
            target = current.reference
            if len(chain) > self.max_depth:
                return None, ResolutionWarning(
                    path=path,
                    kind=ResolutionIssue.DEPTH,
                    message=f"Reference chain for '{path}' exceeds {self.max_depth} hops",
                    chain=tuple(chain),
                )
            if target in chain:
                return None, ResolutionWarning(
                    path=path,
                    kind=ResolutionIssue.CYCLE,
                    message=f"Circular reference: {' -> '.join([*chain, target])}",
                    chain=tuple(chain),
                )
            if target is None or target not in token_map:
                return None, ResolutionWarning(
                    path=path,
                    kind=ResolutionIssue.MISSING,
                    message=f"Token '{path}' references missing token '{target}'",
                    chain=tuple(chain),
                )
            chain.append(target)
            current = token_map[target]

        return current.value, None


def resolve(token_map: dict[str, DesignToken]) -> ResolutionResult:
    """Resolve a token map with the default depth limit."""
    return ReferenceResolver().resolve(token_map)


def find_dependents(token_map: dict[str, DesignToken], path: str) -> list[str]:
    """Paths of semantic tokens whose reference is exactly ``path``."""
    return [
        dependent
        for dependent, token in token_map.items()
        if token.is_semantic and token.reference == path
    ]
