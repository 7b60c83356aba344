"""Tests for routesync.sources.rules -- rule providers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from routesync.exceptions import ManifestError
from routesync.models import OpaqueToken, StringToken
from routesync.sources.rules import ManifestRuleProvider, NullRuleProvider

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

STORE = "App\\Http\\Controllers\\UserController@store"


class TestManifestRuleProvider:
    def test_indirect_layout(self, rules_raw: dict[str, Any]) -> None:
        rules = ManifestRuleProvider.from_mapping(rules_raw).extract_rules(STORE)
        assert list(rules) == ["email", "age", "role", "accepted_terms"]
        assert rules["email"] == [
            StringToken(name="required"),
            StringToken(name="email"),
            StringToken(name="max", args=["255"]),
        ]
        assert rules["role"][1] == OpaqueToken(label="App\\Rules\\AllowedRole")

    def test_inline_rules_under_handlers(self, rules_raw: dict[str, Any]) -> None:
        provider = ManifestRuleProvider.from_mapping(rules_raw)
        rules = provider.extract_rules("App\\Http\\Controllers\\OrderController@update")
        assert "items.*.sku" in rules

    def test_flat_layout(self) -> None:
        provider = ManifestRuleProvider.from_mapping({"PostController@store": {"title": "required"}})
        assert provider.extract_rules("PostController@store") == {
            "title": [StringToken(name="required")]
        }

    def test_unknown_handler(self, rules_raw: dict[str, Any]) -> None:
        provider = ManifestRuleProvider.from_mapping(rules_raw)
        assert provider.extract_rules("Nope@index") is None
        assert provider.extract_rules(None) is None

    def test_invokable_falls_back_to_controller(self) -> None:
        provider = ManifestRuleProvider.from_mapping({"PingController": {"ok": "boolean"}})
        assert provider.extract_rules("PingController@__invoke") == {
            "ok": [StringToken(name="boolean")]
        }

    def test_non_mapping_rules_give_no_fields(self) -> None:
        provider = ManifestRuleProvider.from_mapping({"A@b": ["required"]})
        assert provider.extract_rules("A@b") == {}

    def test_unknown_rule_set_is_skipped(self) -> None:
        provider = ManifestRuleProvider.from_mapping(
            {"handlers": {"A@b": "Missing\\Request"}, "requests": {}}
        )
        assert provider.extract_rules("A@b") is None

    def test_loads_file_once(self, tmp_path: Path) -> None:
        manifest = tmp_path / "rules.json"
        manifest.write_text(json.dumps({"A@b": {"x": "string"}}), encoding="utf-8")
        provider = ManifestRuleProvider(str(manifest))
        assert provider.extract_rules("A@b") is not None

        manifest.unlink()
        assert provider.extract_rules("A@b") is not None

    def test_list_manifest_rejected(self, tmp_path: Path) -> None:
        manifest = tmp_path / "rules.json"
        manifest.write_text("[]", encoding="utf-8")
        with pytest.raises(ManifestError, match="must be an object"):
            ManifestRuleProvider(str(manifest)).extract_rules("A@b")

    def test_load_surfaces_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="not found"):
            ManifestRuleProvider(str(tmp_path / "missing.json")).load()

    def test_load_indexes_once(self, tmp_path: Path) -> None:
        manifest = tmp_path / "rules.json"
        manifest.write_text(json.dumps({"A@b": {"x": "string"}}), encoding="utf-8")
        provider = ManifestRuleProvider(str(manifest))
        assert provider.load() == {"A@b": {"x": "string"}}
        assert provider.load() is provider.load()

    def test_bad_indirection_rejected(self) -> None:
        with pytest.raises(ManifestError):
            ManifestRuleProvider.from_mapping({"handlers": ["x"]})


class TestNullRuleProvider:
    def test_always_none(self) -> None:
        assert NullRuleProvider().extract_rules("A@b") is None
