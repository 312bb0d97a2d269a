"""
Tests for the token manager.

Tests cover:
- Loading directory and file sources
- Create, update and delete with validation
- Dependents reporting and re-resolution
- Concurrent mutations
- Saving back to disk
"""

import asyncio
import json
from pathlib import Path

import pytest

from chuk_mcp_tokens.catalog.manager import TokenManager, coerce_token, validate_path
from chuk_mcp_tokens.catalog.tree import flatten
from chuk_mcp_tokens.constants import ResolutionIssue, TokenTier
from chuk_mcp_tokens.errors import DuplicatePath, InvalidToken, NotFound


@pytest.fixture
def manager(token_dir: Path) -> TokenManager:
    return TokenManager(token_dir)


class TestValidation:
    """Tests for path and payload validation."""

    def test_validate_path(self):
        assert validate_path("colors.blue.500") == ["colors", "blue", "500"]
        with pytest.raises(InvalidToken):
            validate_path("colors")
        with pytest.raises(InvalidToken):
            validate_path("colors..500")

    def test_coerce_primitive(self):
        token = coerce_token("a.b", {"value": "1px", "type": "dimension"})
        assert token.tier == TokenTier.PRIMITIVE
        assert token.type == "dimension"

    def test_coerce_semantic_defaults_value_to_alias(self):
        token = coerce_token("a.b", {"tier": "semantic", "reference": "a.c"})
        assert token.value == "{a.c}"
        assert token.reference == "a.c"

    def test_coerce_infers_semantic_from_alias(self):
        token = coerce_token("a.b", {"value": "{a.c}"})
        assert token.tier == TokenTier.SEMANTIC
        assert token.reference == "a.c"

    def test_coerce_drops_resolved_value(self):
        token = coerce_token("a.b", {"value": "{a.c}", "resolvedValue": "#fff"})
        assert token.resolved_value is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"tier": "semantic", "value": "x"},
            {"tier": "primitive", "value": "x", "reference": "a.c"},
            {"tier": "primitive"},
            {"value": True},
            {"value": "x", "tier": "derived"},
        ],
    )
    def test_coerce_rejects(self, payload):
        with pytest.raises(InvalidToken):
            coerce_token("a.b", payload)


class TestLoad:
    """Tests for loading sources."""

    @pytest.mark.asyncio
    async def test_load_directory(self, manager: TokenManager):
        assert not manager.is_loaded
        snapshot = await manager.load()

        assert manager.is_loaded
        assert snapshot.generation == 1
        assert snapshot.get("semantic.primary").resolved_value == "#3b82f6"
        assert snapshot.meta.token_count == 2

    @pytest.mark.asyncio
    async def test_load_single_file(self, temp_dir: Path, nested_tokens: dict):
        path = temp_dir / "tokens.json"
        path.write_text(json.dumps(nested_tokens))

        snapshot = await TokenManager(path).load()
        assert snapshot.get("color.primary").resolved_value == "#3b82f6"
        assert snapshot.meta.semantic_count == 1

    @pytest.mark.asyncio
    async def test_load_without_source(self):
        with pytest.raises(ValueError):
            await TokenManager().load()

    @pytest.mark.asyncio
    async def test_tree_and_map_agree(self, manager: TokenManager):
        snapshot = await manager.load()
        assert flatten(list(snapshot.categories)) == dict(snapshot.token_map)

    @pytest.mark.asyncio
    async def test_snapshot_map_is_read_only(self, manager: TokenManager):
        snapshot = await manager.load()
        with pytest.raises(TypeError):
            snapshot.token_map["x.y"] = None


class TestMutations:
    """Tests for create, update and delete."""

    @pytest.mark.asyncio
    async def test_create(self, manager: TokenManager):
        await manager.load()
        snapshot = await manager.create("colors.red.500", {"value": "#ef4444"})

        assert snapshot.get("colors.red.500").value == "#ef4444"
        assert snapshot.generation == 2
        assert flatten(list(snapshot.categories)) == dict(snapshot.token_map)

    @pytest.mark.asyncio
    async def test_create_semantic_resolves(self, manager: TokenManager):
        await manager.load()
        snapshot = await manager.create(
            "semantic.link", {"tier": "semantic", "reference": "semantic.primary"}
        )
        assert snapshot.get("semantic.link").resolved_value == "#3b82f6"

    @pytest.mark.asyncio
    async def test_create_duplicate(self, manager: TokenManager):
        await manager.load()
        with pytest.raises(DuplicatePath):
            await manager.create("colors.blue.500", {"value": "#000"})

    @pytest.mark.asyncio
    async def test_create_conflicting_paths(self, manager: TokenManager):
        await manager.load()
        with pytest.raises(InvalidToken):
            await manager.create("colors.blue", {"value": "#000"})
        with pytest.raises(InvalidToken):
            await manager.create("colors.blue.500.light", {"value": "#000"})

    @pytest.mark.asyncio
    async def test_failed_mutation_commits_nothing(self, manager: TokenManager):
        before = await manager.load()
        with pytest.raises(InvalidToken):
            await manager.create("colors.bad", {"tier": "semantic"})
        assert manager.snapshot is before

    @pytest.mark.asyncio
    async def test_update_re_resolves_dependents(self, manager: TokenManager):
        await manager.load()
        snapshot = await manager.update("colors.blue.500", {"value": "#2563eb"})
        assert snapshot.get("semantic.primary").resolved_value == "#2563eb"

    @pytest.mark.asyncio
    async def test_update_can_change_tier(self, manager: TokenManager):
        await manager.load()
        snapshot = await manager.update("semantic.primary", {"value": "#123456"})
        token = snapshot.get("semantic.primary")
        assert token.tier == TokenTier.PRIMITIVE
        assert token.resolved_value is None

    @pytest.mark.asyncio
    async def test_update_missing(self, manager: TokenManager):
        await manager.load()
        with pytest.raises(NotFound):
            await manager.update("colors.green.500", {"value": "#0f0"})

    @pytest.mark.asyncio
    async def test_delete_reports_dependents(self, manager: TokenManager):
        """Deleting a referenced primitive leaves its dependents unresolved."""
        await manager.load()
        snapshot, dependents = await manager.delete("colors.blue.500")

        assert dependents.dependents == ("semantic.primary",)
        assert "colors.blue.500" not in snapshot.token_map
        assert snapshot.get("semantic.primary").resolved_value is None
        assert [w.kind for w in snapshot.resolution_warnings] == [ResolutionIssue.MISSING]
        # The emptied category is pruned
        assert [c.key for c in snapshot.categories] == ["semantic"]

    @pytest.mark.asyncio
    async def test_delete_without_dependents(self, manager: TokenManager):
        await manager.load()
        _, dependents = await manager.delete("semantic.primary")
        assert not dependents

    @pytest.mark.asyncio
    async def test_delete_missing(self, manager: TokenManager):
        await manager.load()
        with pytest.raises(NotFound):
            await manager.delete("colors.blue.900")

    @pytest.mark.asyncio
    async def test_reader_keeps_old_snapshot(self, manager: TokenManager):
        old = await manager.load()
        await manager.create("colors.red.500", {"value": "#ef4444"})
        assert "colors.red.500" not in old.token_map

    @pytest.mark.asyncio
    async def test_concurrent_creates(self, manager: TokenManager):
        """Concurrent writers are serialized; no update is lost."""
        await manager.load()
        await asyncio.gather(
            *(manager.create(f"spacing.s{i}", {"value": f"{i}px"}) for i in range(10))
        )
        snapshot = manager.snapshot
        assert all(f"spacing.s{i}" in snapshot.token_map for i in range(10))
        assert snapshot.generation == 11


class TestSave:
    """Tests for writing back to disk."""

    @pytest.mark.asyncio
    async def test_save_directory_and_reload(self, manager: TokenManager, token_dir: Path):
        await manager.load()
        await manager.create("colors.red.500", {"value": "#ef4444"})
        await manager.create("radius.sm", {"value": "2px"})
        await manager.save()

        assert (token_dir / "radius.json").exists()
        reloaded = await TokenManager(token_dir).load()
        assert reloaded.get("colors.red.500").value == "#ef4444"
        assert reloaded.get("radius.sm").value == "2px"
        assert reloaded.get("semantic.primary").resolved_value == "#3b82f6"

    @pytest.mark.asyncio
    async def test_save_removes_deleted_category_file(
        self, manager: TokenManager, token_dir: Path
    ):
        await manager.load()
        await manager.delete("semantic.primary")
        await manager.save()
        assert not (token_dir / "semantic.json").exists()
        assert (token_dir / "colors.json").exists()

    @pytest.mark.asyncio
    async def test_saved_files_have_no_derived_values(
        self, manager: TokenManager, token_dir: Path
    ):
        await manager.load()
        await manager.save()
        data = json.loads((token_dir / "semantic.json").read_text())
        assert data["primary"] == {
            "value": "{colors.blue.500}",
            "tier": "semantic",
            "reference": "colors.blue.500",
        }

    @pytest.mark.asyncio
    async def test_save_writes_the_file_that_was_loaded(self, temp_dir: Path):
        """With colors.json and colors.yaml, edits go to the loaded (first) file."""
        (temp_dir / "colors.json").write_text(json.dumps({"red": {"value": "#f00"}}))
        (temp_dir / "colors.yaml").write_text("green:\n  value: '#0f0'\n")

        manager = TokenManager(temp_dir)
        loaded = await manager.load()
        assert loaded.get("colors.green") is None

        await manager.update("colors.red", {"value": "#900"})
        await manager.save()

        reloaded = await TokenManager(temp_dir).load()
        assert reloaded.get("colors.red").value == "#900"
        assert "green" in (temp_dir / "colors.yaml").read_text()

    @pytest.mark.asyncio
    async def test_alias_shaped_primitive_survives_save(self, temp_dir: Path):
        path = temp_dir / "tokens.json"
        manager = TokenManager(path)
        await manager.load_data({"c": {"a": {"value": 1}}})
        await manager.create("c.literal", {"value": "{c.a}", "tier": "primitive"})
        await manager.save()

        reloaded = await TokenManager(path).load()
        token = reloaded.get("c.literal")
        assert token.tier == TokenTier.PRIMITIVE
        assert token.value == "{c.a}"

    @pytest.mark.asyncio
    async def test_save_yaml_file(self, temp_dir: Path, nested_tokens: dict):
        path = temp_dir / "tokens.yaml"
        manager = TokenManager(path)
        await manager.load_data(nested_tokens)
        await manager.update("spacing.md", {"value": "1.25rem"})
        await manager.save()

        reloaded = await TokenManager(path).load()
        assert reloaded.get("spacing.md").value == "1.25rem"
        assert reloaded.get("color.primary").resolved_value == "#3b82f6"
