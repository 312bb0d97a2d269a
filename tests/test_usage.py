"""
Tests for usage indexing.

Tests cover:
- Custom-property signatures and line matching
- Literal value matching
- Component metadata
- Corpus discovery
- Index caching
"""

from pathlib import Path

import pytest

from chuk_mcp_tokens.constants import TokenTier
from chuk_mcp_tokens.models.token import DesignToken
from chuk_mcp_tokens.models.usage import usage_count, usage_index_to_dict
from chuk_mcp_tokens.usage import (
    ScanCache,
    SignatureSet,
    UsageIndexer,
    css_var_name,
    find_corpus_files,
    normalize_value,
)
from chuk_mcp_tokens.usage.indexer import match_line, property_at, read_component_meta

BUTTON = """<art title="Button" category="Components">
  <Variant name="Primary" />
</art>

<style scoped>
.button {
  color: var(--colors-blue-500);
  padding: var(--spacing-sm) var(--spacing-md);
}
</style>
"""


@pytest.fixture
def token_map() -> dict[str, DesignToken]:
    return {
        "colors.blue.500": DesignToken(value="#3b82f6"),
        "spacing.sm": DesignToken(value="0.5rem"),
        "spacing.md": DesignToken(value="1rem"),
        "semantic.primary": DesignToken(
            value="{colors.blue.500}",
            tier=TokenTier.SEMANTIC,
            reference="colors.blue.500",
            resolved_value="#3b82f6",
        ),
    }


class TestSignatures:
    """Tests for signature helpers."""

    def test_css_var_name(self):
        assert css_var_name("colors.blue.500") == "--colors-blue-500"

    @pytest.mark.parametrize(
        "raw,expected",
        [("#FFF", "#ffffff"), (" .5rem ", "0.5rem"), ("#3B82F6", "#3b82f6"), ("1rem", "1rem")],
    )
    def test_normalize_value(self, raw: str, expected: str):
        assert normalize_value(raw) == expected

    def test_value_table_orders_primitives_first(self, token_map):
        signatures = SignatureSet(token_map, token_map, include_values=True)
        assert signatures.values["#3b82f6"] == ["colors.blue.500", "semantic.primary"]

    def test_values_off_by_default(self, token_map):
        assert SignatureSet(token_map, token_map).values == {}

    def test_fingerprint_changes_with_tokens(self, token_map):
        a = SignatureSet(token_map).fingerprint
        b = SignatureSet([*token_map, "spacing.lg"]).fingerprint
        assert a != b
        assert a == SignatureSet(token_map).fingerprint


class TestMatchLine:
    """Tests for single-line matching."""

    def test_declaration(self, token_map):
        signatures = SignatureSet(token_map)
        assert match_line("  color: var(--colors-blue-500);", signatures) == [
            ("colors.blue.500", "color")
        ]

    def test_several_tokens_on_one_line(self, token_map):
        hits = match_line("padding: var(--spacing-sm) var(--spacing-md);", SignatureSet(token_map))
        assert hits == [("spacing.sm", "padding"), ("spacing.md", "padding")]

    def test_same_token_reported_once_per_line(self, token_map):
        hits = match_line(
            "margin: var(--spacing-sm) var(--spacing-sm);", SignatureSet(token_map)
        )
        assert hits == [("spacing.sm", "margin")]

    def test_definition_not_counted(self, token_map):
        assert match_line("  --colors-blue-500: #3b82f6;", SignatureSet(token_map)) == []

    def test_longer_name_not_matched(self, token_map):
        """--spacing-sm-x is a different property than --spacing-sm."""
        assert match_line("gap: var(--spacing-sm-x);", SignatureSet(token_map)) == []

    def test_value_match(self, token_map):
        signatures = SignatureSet(token_map, token_map, include_values=True)
        hits = match_line("  background: #3B82F6;", signatures)
        assert hits == [("colors.blue.500", "background"), ("semantic.primary", "background")]

    def test_value_match_inside_shorthand(self, token_map):
        signatures = SignatureSet(token_map, token_map, include_values=True)
        hits = match_line("border: 1px solid #3b82f6 !important;", signatures)
        assert ("colors.blue.500", "border") in hits

    def test_value_ignored_in_var_lines(self, token_map):
        signatures = SignatureSet(token_map, token_map, include_values=True)
        hits = match_line("color: var(--colors-blue-500, #3b82f6);", signatures)
        assert hits == [("colors.blue.500", "color")]

    def test_property_at(self):
        line = ".card { border-color: var(--x); }"
        assert property_at(line, line.index("--x")) == "border-color"
        assert property_at("var(--x)", 4) == "var("


class TestComponentMeta:
    """Tests for component title and category."""

    def test_art_tag(self):
        assert read_component_meta(BUTTON, "src/Button.art.vue") == ("Button", "Components")

    def test_single_quotes_and_missing_category(self):
        text = "<art title='Card'>\n</art>"
        assert read_component_meta(text, "Card.art.vue") == ("Card", None)

    def test_file_name_fallback(self):
        assert read_component_meta(".a { }", "src/styles/base.css") == ("base", None)


class TestScan:
    """Tests for in-memory scanning."""

    def test_scan_reports_entries(self, token_map):
        index = UsageIndexer().scan({"src/Button.art.vue": BUTTON}, token_map)

        entries = index["colors.blue.500"]
        assert len(entries) == 1
        entry = entries[0]
        assert entry.component_path == "src/Button.art.vue"
        assert entry.component_title == "Button"
        assert entry.component_category == "Components"
        assert entry.matches[0].line == 7
        assert entry.matches[0].property == "color"
        assert entry.matches[0].line_content == "  color: var(--colors-blue-500);"

    def test_unused_tokens_absent(self, token_map):
        index = UsageIndexer().scan({"src/Button.art.vue": BUTTON}, token_map)
        assert "semantic.primary" not in index
        assert set(index) == {"colors.blue.500", "spacing.sm", "spacing.md"}

    def test_entries_per_file(self, token_map):
        corpus = {"a.css": "x { gap: var(--spacing-sm); }", "b.css": "y { gap: var(--spacing-sm); }"}
        index = UsageIndexer().scan(corpus, token_map)
        assert [e.component_path for e in index["spacing.sm"]] == ["a.css", "b.css"]
        assert usage_count(index, "spacing.sm") == 2
        assert usage_count(index, "spacing.md") == 0

    def test_line_numbers_count_newlines_only(self, token_map):
        """Form feeds and other Unicode line breaks do not start new lines."""
        text = "/* page\x0cbreak\u2028sep */\n.a { color: var(--colors-blue-500); }\r\n"
        index = UsageIndexer().scan({"a.css": text}, token_map)
        match = index["colors.blue.500"][0].matches[0]
        assert match.line == 2
        assert match.line_content == ".a { color: var(--colors-blue-500); }"

    def test_no_tokens(self):
        assert UsageIndexer().scan({"a.css": "--x: 1;"}, []) == {}

    def test_serialization(self, token_map):
        index = UsageIndexer().scan({"src/Button.art.vue": BUTTON}, token_map)
        data = usage_index_to_dict(index)
        entry = data["spacing.md"][0]
        assert entry["componentPath"] == "src/Button.art.vue"
        assert entry["matches"][0]["lineContent"].strip().startswith("padding")


class TestCorpus:
    """Tests for corpus discovery."""

    def test_find_corpus_files(self, temp_dir: Path):
        (temp_dir / "src").mkdir()
        (temp_dir / "src" / "Button.art.vue").write_text(BUTTON)
        (temp_dir / "src" / "notes.md").write_text("--colors-blue-500")
        (temp_dir / "base.css").write_text(":root {}")
        (temp_dir / "node_modules" / "pkg").mkdir(parents=True)
        (temp_dir / "node_modules" / "pkg" / "x.css").write_text("")

        files = find_corpus_files(temp_dir)
        relative = [p.relative_to(temp_dir).as_posix() for p in files]
        assert relative == ["base.css", "src/Button.art.vue"]

    def test_custom_globs(self, temp_dir: Path):
        (temp_dir / "a.scss").write_text("")
        (temp_dir / "b.css").write_text("")
        files = find_corpus_files(temp_dir, include=["*.scss"], exclude=[])
        assert [p.name for p in files] == ["a.scss"]

    def test_missing_root(self, temp_dir: Path):
        assert find_corpus_files(temp_dir / "missing") == []


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestScanCache:
    """Tests for the TTL cache."""

    def test_expiry(self):
        clock = FakeClock()
        cache = ScanCache(ttl=5, clock=clock)
        cache.put("k", {})

        clock.now = 4.9
        assert cache.get("k") == {}
        clock.now = 5.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_put_drops_expired_entries(self):
        """Entries under old keys do not accumulate once they expire."""
        clock = FakeClock()
        cache = ScanCache(ttl=5, clock=clock)
        cache.put("old-tokens", {})
        clock.now = 3.0
        cache.put("fresher", {})

        clock.now = 6.0
        cache.put("new-tokens", {})
        assert len(cache) == 2
        assert cache.get("fresher") == {}
        assert cache.get("old-tokens") is None

    def test_zero_ttl_disables(self):
        cache = ScanCache(ttl=0, clock=FakeClock())
        cache.put("k", {})
        assert cache.get("k") is None

    def test_invalidate(self):
        cache = ScanCache(ttl=60)
        cache.put("a", {})
        cache.put("b", {})
        cache.invalidate("a")
        assert len(cache) == 1
        cache.invalidate()
        assert len(cache) == 0


class TestBuildIndex:
    """Tests for indexing files on disk."""

    @pytest.fixture
    def corpus(self, temp_dir: Path) -> Path:
        (temp_dir / "src").mkdir()
        (temp_dir / "src" / "Button.art.vue").write_text(BUTTON)
        (temp_dir / "src" / "card.css").write_text(".card {\n  margin: var(--spacing-md);\n}\n")
        return temp_dir

    @pytest.mark.asyncio
    async def test_build_index(self, corpus: Path, token_map):
        index = await UsageIndexer().build_index(corpus, token_map)

        paths = [e.component_path for e in index["spacing.md"]]
        assert paths == ["src/Button.art.vue", "src/card.css"]
        assert index["spacing.md"][1].component_title == "card"
        assert index["spacing.md"][1].matches[0].line == 2

    @pytest.mark.asyncio
    async def test_cached_until_refresh(self, corpus: Path, token_map):
        indexer = UsageIndexer(ScanCache(ttl=60))
        first = await indexer.build_index(corpus, token_map)

        (corpus / "src" / "extra.css").write_text("a { color: var(--colors-blue-500); }")
        assert await indexer.build_index(corpus, token_map) is first

        refreshed = await indexer.build_index(corpus, token_map, refresh=True)
        assert len(refreshed["colors.blue.500"]) == 2

    @pytest.mark.asyncio
    async def test_new_tokens_miss_cache(self, corpus: Path, token_map):
        indexer = UsageIndexer(ScanCache(ttl=60))
        first = await indexer.build_index(corpus, token_map)
        grown = {**token_map, "spacing.lg": DesignToken(value="2rem")}
        assert await indexer.build_index(corpus, grown) is not first

    @pytest.mark.asyncio
    async def test_unreadable_file_skipped(self, corpus: Path, token_map):
        (corpus / "src" / "binary.css").write_bytes(b"\xff\xfe\x00bad")
        index = await UsageIndexer().build_index(corpus, token_map)
        assert "spacing.md" in index
