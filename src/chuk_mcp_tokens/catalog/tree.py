"""
Category tree utilities.

Small pure functions over the category tree. None of them mutate their
input: every edit or filter returns a new list of categories that shares
untouched nodes with the original. Source order is always preserved.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from typing import Any

from chuk_mcp_tokens.constants import TokenTier
from chuk_mcp_tokens.models.token import DesignToken, TokenCategory, TokenMeta

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")

TokenPredicate = Callable[[str, DesignToken], bool]


def format_category_name(name: str) -> str:
    """
    Derive a display name from a source key.

    ``font-size``, ``font_size`` and ``fontSize`` all become ``Font Size``.
    Applying it to its own output is a no-op.
    """
    spaced = name.replace("-", " ").replace("_", " ")
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", spaced)
    return " ".join(word[:1].upper() + word[1:].lower() for word in spaced.split(" "))


def join_path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


# Traversal


def iter_tokens(
    categories: list[TokenCategory], prefix: str = ""
) -> Iterator[tuple[str, DesignToken]]:
    """Yield (path, token) pairs depth-first, tokens before subcategories."""
    for category in categories:
        category_path = join_path(prefix, category.key)
        for name, token in category.tokens.items():
            yield join_path(category_path, name), token
        yield from iter_tokens(category.children, category_path)


def flatten(categories: list[TokenCategory]) -> dict[str, DesignToken]:
    """Build the flat path map for a tree."""
    return dict(iter_tokens(categories))


def surviving_paths(categories: list[TokenCategory]) -> set[str]:
    """Set of token paths present in a tree."""
    return {path for path, _ in iter_tokens(categories)}


def find_token(categories: list[TokenCategory], path: str) -> DesignToken | None:
    *keys, name = path.split(".")
    nodes = categories
    category: TokenCategory | None = None
    for key in keys:
        category = next((c for c in nodes if c.key == key), None)
        if category is None:
            return None
        nodes = category.children
    if category is None:
        return None
    return category.tokens.get(name)


def apply_token_map(
    categories: list[TokenCategory],
    token_map: dict[str, DesignToken],
    prefix: str = "",
) -> list[TokenCategory]:
    """Replace every token in the tree with its entry in token_map."""
    result: list[TokenCategory] = []
    for category in categories:
        category_path = join_path(prefix, category.key)
        tokens = {
            name: token_map[join_path(category_path, name)]
            for name in category.tokens
            if join_path(category_path, name) in token_map
        }
        subcategories = apply_token_map(category.children, token_map, category_path)
        result.append(
            category.model_copy(
                update={"tokens": tokens, "subcategories": subcategories or None}
            )
        )
    return result


# Filtering


def filter_tree(
    categories: list[TokenCategory],
    keep: TokenPredicate,
    prefix: str = "",
) -> list[TokenCategory]:
    """
    Keep tokens for which keep(name, token) is true.

    A category survives if it or any descendant keeps at least one token.
    """
    result: list[TokenCategory] = []
    for category in categories:
        category_path = join_path(prefix, category.key)
        tokens = {name: token for name, token in category.tokens.items() if keep(name, token)}
        subcategories = filter_tree(category.children, keep, category_path)
        if tokens or subcategories:
            result.append(
                TokenCategory(
                    name=category.name,
                    key=category.key,
                    tokens=tokens,
                    subcategories=subcategories or None,
                )
            )
    return result


def filter_by_tier(categories: list[TokenCategory], tier: TokenTier | str) -> list[TokenCategory]:
    """Keep only tokens of the given tier."""
    wanted = TokenTier(tier)
    return filter_tree(categories, lambda _name, token: token.tier == wanted)


def token_matches_query(name: str, token: DesignToken, query: str) -> bool:
    """Case-insensitive match on name, value, description or reference."""
    q = query.lower()
    if q in name.lower() or q in str(token.value).lower():
        return True
    if token.description and q in token.description.lower():
        return True
    return bool(token.is_semantic and token.reference and q in token.reference.lower())


def filter_by_query(categories: list[TokenCategory], query: str) -> list[TokenCategory]:
    """Keep only tokens matching a free-text query. An empty query keeps all."""
    if not query:
        return filter_tree(categories, lambda _name, _token: True)
    return filter_tree(categories, lambda name, token: token_matches_query(name, token, query))


# Editing


def _edit_category(
    categories: list[TokenCategory],
    keys: list[str],
    edit: Callable[[TokenCategory], TokenCategory],
    create: bool = False,
) -> list[TokenCategory]:
    """Apply edit to the category at keys, pruning categories left empty."""
    head, rest = keys[0], keys[1:]
    result: list[TokenCategory] = []
    found = False

    def descend(category: TokenCategory) -> TokenCategory:
        if not rest:
            return edit(category)
        subcategories = _edit_category(category.children, rest, edit, create)
        return category.model_copy(update={"subcategories": subcategories or None})

    for category in categories:
        if category.key == head and not found:
            found = True
            edited = descend(category)
            if edited.tokens or edited.subcategories:
                result.append(edited)
        else:
            result.append(category)

    if not found and create:
        result.append(descend(TokenCategory(name=format_category_name(head), key=head)))

    return result


def insert_token(
    categories: list[TokenCategory], path: str, token: DesignToken
) -> list[TokenCategory]:
    """Add a token, creating any missing categories along the path."""
    *keys, name = path.split(".")

    def add(category: TokenCategory) -> TokenCategory:
        return category.model_copy(update={"tokens": {**category.tokens, name: token}})

    return _edit_category(categories, keys, add, create=True)


def replace_token(
    categories: list[TokenCategory], path: str, token: DesignToken
) -> list[TokenCategory]:
    """Replace an existing token, keeping its position."""
    *keys, name = path.split(".")

    def replace(category: TokenCategory) -> TokenCategory:
        tokens = {k: (token if k == name else v) for k, v in category.tokens.items()}
        return category.model_copy(update={"tokens": tokens})

    return _edit_category(categories, keys, replace)


def remove_token(categories: list[TokenCategory], path: str) -> list[TokenCategory]:
    """Remove a token; categories left without tokens are dropped."""
    *keys, name = path.split(".")

    def remove(category: TokenCategory) -> TokenCategory:
        tokens = {k: v for k, v in category.tokens.items() if k != name}
        return category.model_copy(update={"tokens": tokens})

    return _edit_category(categories, keys, remove)


# Reporting


def count_tokens(token_map: dict[str, DesignToken]) -> TokenMeta:
    semantic = sum(1 for token in token_map.values() if token.is_semantic)
    return TokenMeta(
        token_count=len(token_map),
        primitive_count=len(token_map) - semantic,
        semantic_count=semantic,
    )


def categories_to_dicts(categories: list[TokenCategory]) -> list[dict[str, Any]]:
    return [category.to_api_dict() for category in categories]


def token_map_to_dict(token_map: dict[str, DesignToken]) -> dict[str, dict[str, Any]]:
    return {path: token.to_api_dict() for path, token in token_map.items()}


def render_source(categories: list[TokenCategory]) -> dict[str, Any]:
    """
    Serialize a tree back to the nested source format.

    Parsing the result yields the same paths, values, tiers and references.
    """

    def render(category: TokenCategory) -> dict[str, Any]:
        data: dict[str, Any] = {
            name: token.to_source_dict() for name, token in category.tokens.items()
        }
        for sub in category.children:
            data[sub.key] = render(sub)
        return data

    return {category.key: render(category) for category in categories}


def render_markdown(categories: list[TokenCategory]) -> str:
    """Render the tree as Markdown tables, one heading level per depth."""

    def render(category: TokenCategory, level: int) -> str:
        md = f"\n{'#' * min(level, 6)} {category.name}\n\n"
        if category.tokens:
            md += "| Token | Value | Description |\n"
            md += "|-------|-------|-------------|\n"
            for name, token in category.tokens.items():
                value = f"`{token.value}`"
                if token.resolved_value is not None:
                    value += f" (`{token.resolved_value}`)"
                md += f"| `{name}` | {value} | {token.description or '-'} |\n"
            md += "\n"
        for sub in category.children:
            md += render(sub, level + 1)
        return md

    markdown = "# Design Tokens\n"
    for category in categories:
        markdown += render(category, 2)
    return markdown
