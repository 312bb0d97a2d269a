"""
Usage indexer - finds where tokens are referenced in component sources.

Every token path gets a custom-property signature (``colors.blue.500`` ->
``--colors-blue-500``) and, optionally, its literal value. Each corpus line
is scanned once: custom-property names are cut out with plain string
searches and looked up in the signature table, so the cost is linear in
the corpus size no matter how many tokens exist.

This is line-oriented discovery, not a parse of the component's markup or
styles. References built dynamically are not found.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from chuk_mcp_tokens.constants import (
    CSS_VAR_PREFIX,
    DEFAULT_CORPUS_EXCLUDE,
    DEFAULT_CORPUS_INCLUDE,
)
from chuk_mcp_tokens.models.token import DesignToken
from chuk_mcp_tokens.models.usage import UsageEntry, UsageIndex, UsageMatch
from chuk_mcp_tokens.usage.cache import ScanCache
from chuk_mcp_tokens.usage.corpus import find_corpus_files

logger = logging.getLogger(__name__)

_ART_ATTRIBUTE = re.compile(r"""([\w-]+)\s*=\s*["']([^"']*)["']""")
_VALUE_SEPARATORS = str.maketrans({c: " " for c in ",;()"})


def css_var_name(path: str) -> str:
    """Custom property name for a token path."""
    return CSS_VAR_PREFIX + path.replace(".", "-")


def normalize_value(value: str) -> str:
    """Normalize a CSS value for comparison (#fff -> #ffffff, .5rem -> 0.5rem)."""
    v = value.strip().lower()
    if v.startswith("#") and len(v) in (4, 5):
        return "#" + "".join(c * 2 for c in v[1:])
    if v.startswith("."):
        return "0" + v
    return v


def _is_ident_char(c: str) -> bool:
    return c.isalnum() or c in "-_"


class SignatureSet:
    """
    Lookup tables from textual signatures to token paths.

    Built once per scan. Several paths can share a signature (two tokens
    with the same value, or ``a.b-c`` and ``a-b.c``), so every table maps
    to a list of paths.
    """

    def __init__(
        self,
        token_paths: Iterable[str],
        token_map: Mapping[str, DesignToken] | None = None,
        include_values: bool = False,
    ):
        self.var_names: dict[str, list[str]] = {}
        self.values: dict[str, list[str]] = {}

        for path in token_paths:
            self.var_names.setdefault(css_var_name(path), []).append(path)

        if include_values and token_map:
            # Primitives first so value matches list them before semantics
            ordered = sorted(token_map.items(), key=lambda item: item[1].is_semantic)
            for path, token in ordered:
                literal = token.resolved_value if token.is_semantic else token.value
                # Bare numbers match far too many unrelated lines
                if not isinstance(literal, str) or len(literal.strip()) < 2:
                    continue
                self.values.setdefault(normalize_value(literal), []).append(path)

    @property
    def fingerprint(self) -> str:
        """Stable digest of the signature tables, used as a cache key part."""
        digest = hashlib.sha1()
        for table in (self.var_names, self.values):
            for signature in sorted(table):
                digest.update(signature.encode())
                digest.update(b"\0")
                digest.update("\0".join(table[signature]).encode())
                digest.update(b"\1")
            digest.update(b"\2")
        return digest.hexdigest()

    def __bool__(self) -> bool:
        return bool(self.var_names or self.values)


def property_at(line: str, pos: int) -> str:
    """
    Declaration or selector that a match at ``pos`` belongs to.

    ``color: var(--x)`` gives ``color``; without a declaration the word
    preceding the match is used.
    """
    before = line[:pos]
    colon = before.rfind(":")
    if colon != -1:
        declaration = before[:colon].rstrip()
        start = len(declaration)
        while start > 0 and _is_ident_char(declaration[start - 1]):
            start -= 1
        name = declaration[start:]
        if name:
            return name
    words = before.split()
    return words[-1] if words else ""


def match_line(line: str, signatures: SignatureSet) -> list[tuple[str, str]]:
    """
    Find token references in one line.

    Returns:
        (token path, property) pairs in the order they appear; a token is
        reported at most once per line
    """
    hits: list[tuple[str, str]] = []
    seen: set[str] = set()

    def record(paths: list[str], prop: str) -> None:
        for path in paths:
            if path not in seen:
                seen.add(path)
                hits.append((path, prop))

    pos = line.find(CSS_VAR_PREFIX)
    while pos != -1:
        end = pos + len(CSS_VAR_PREFIX)
        while end < len(line) and _is_ident_char(line[end]):
            end += 1
        paths = signatures.var_names.get(line[pos:end])
        # "--colors-blue-500: ..." defines the property rather than using it
        if paths and not line[end:].lstrip().startswith(":"):
            record(paths, property_at(line, pos))
        pos = line.find(CSS_VAR_PREFIX, end)

    if signatures.values and ":" in line:
        declaration, _, value_part = line.partition(":")
        value_part = value_part.strip().rstrip(";").strip()
        if value_part.endswith("!important"):
            value_part = value_part[: -len("!important")].strip()
        if value_part and "var(" not in value_part:
            prop = declaration.strip().split()[-1] if declaration.strip() else ""
            full = signatures.values.get(normalize_value(value_part))
            if full:
                record(full, prop)
            for word in value_part.translate(_VALUE_SEPARATORS).split():
                paths = signatures.values.get(normalize_value(word))
                if paths:
                    record(paths, prop)

    return hits


def read_component_meta(text: str, component_path: str) -> tuple[str, str | None]:
    """
    Title and category of a component file.

    Taken from an ``<art title="..." category="...">`` tag when present,
    otherwise the file name without its extensions.
    """
    start = text.find("<art")
    if start != -1:
        end = text.find(">", start)
        if end != -1:
            attributes = dict(_ART_ATTRIBUTE.findall(text[start:end]))
            if attributes.get("title"):
                return attributes["title"], attributes.get("category") or None

    name = Path(component_path).name
    return name.split(".", 1)[0] or name, None


def scan_source(component_path: str, text: str, signatures: SignatureSet) -> dict[str, UsageEntry]:
    """Scan one component's text, grouping matches per token."""
    matches: dict[str, list[UsageMatch]] = {}
    # Only \n ends a line, so numbers match what an editor shows
    for number, raw in enumerate(text.split("\n"), start=1):
        line = raw.removesuffix("\r")
        for path, prop in match_line(line, signatures):
            matches.setdefault(path, []).append(
                UsageMatch(line=number, line_content=line, property=prop)
            )

    if not matches:
        return {}

    title, category = read_component_meta(text, component_path)
    return {
        path: UsageEntry(
            component_path=component_path,
            component_title=title,
            component_category=category,
            matches=found,
        )
        for path, found in matches.items()
    }


def merge_entries(per_file: Iterable[dict[str, UsageEntry]]) -> UsageIndex:
    """Merge per-file results by token path, keeping file order."""
    index: UsageIndex = {}
    for entries in per_file:
        for path, entry in entries.items():
            index.setdefault(path, []).append(entry)
    return index


class UsageIndexer:
    """
    Builds the reverse index from token paths to component usages.

    Scans are read-only and independent per file; results are cached in
    the ScanCache passed in.
    """

    def __init__(
        self,
        cache: ScanCache | None = None,
        include: Sequence[str] = DEFAULT_CORPUS_INCLUDE,
        exclude: Sequence[str] = DEFAULT_CORPUS_EXCLUDE,
    ):
        """
        Initialize the indexer.

        Args:
            cache: Cache for built indexes (default: a new ScanCache)
            include: Corpus file globs
            exclude: Corpus exclusion globs
        """
        self.cache = cache if cache is not None else ScanCache()
        self.include = tuple(include)
        self.exclude = tuple(exclude)

    def scan(
        self,
        corpus: Mapping[str, str],
        token_paths: Iterable[str],
        token_map: Mapping[str, DesignToken] | None = None,
        include_values: bool = False,
    ) -> UsageIndex:
        """
        Index an in-memory corpus.

        Args:
            corpus: Component path to source text, in scan order
            token_paths: Token paths to look for
            token_map: Tokens, needed when include_values is set
            include_values: Also match literal token values

        Returns:
            Token path to usage entries
        """
        signatures = SignatureSet(token_paths, token_map, include_values)
        if not signatures:
            return {}
        return merge_entries(
            scan_source(component_path, text, signatures) for component_path, text in corpus.items()
        )

    async def build_index(
        self,
        root: Path,
        token_map: Mapping[str, DesignToken],
        include_values: bool = False,
        refresh: bool = False,
    ) -> UsageIndex:
        """
        Index every corpus file under root.

        Files are read and scanned concurrently; a fresh cached index for the
        same root and tokens is returned without rescanning.

        Args:
            root: Corpus root directory
            token_map: Current tokens
            include_values: Also match literal token values
            refresh: Ignore the cache

        Returns:
            Token path to usage entries
        """
        signatures = SignatureSet(token_map.keys(), token_map, include_values)
        key = (str(root.resolve()), signatures.fingerprint, tuple(self.include), tuple(self.exclude))

        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        files = await asyncio.to_thread(find_corpus_files, root, self.include, self.exclude)
        results = await asyncio.gather(
            *(asyncio.to_thread(self._scan_file, path, root, signatures) for path in files)
        )
        index = merge_entries(results)
        self.cache.put(key, index)

        logger.info(
            "Indexed %d files under %s: %d tokens referenced",
            len(files),
            root,
            len(index),
        )
        return index

    def invalidate(self) -> None:
        """Forget all cached indexes."""
        self.cache.invalidate()

    @staticmethod
    def _scan_file(path: Path, root: Path, signatures: SignatureSet) -> dict[str, UsageEntry]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable corpus file %s: %s", path, e)
            return {}
        return scan_source(path.relative_to(root).as_posix(), text, signatures)
