"""Tests for routesync.sources.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from routesync.exceptions import ManifestError
from routesync.sources.loader import _load_from_url, _parse_content, load_document

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    def test_loads_json_file(self) -> None:
        result = load_document(str(FIXTURES_DIR / "routes.json"))
        assert isinstance(result, list)
        assert result[0]["uri"] == "api/users"

    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        manifest = tmp_path / "routes.yaml"
        manifest.write_text(
            textwrap.dedent("""\
                routes:
                  - uri: api/users
                    methods: [GET]
            """),
            encoding="utf-8",
        )
        result = load_document(str(manifest))
        assert result == {"routes": [{"uri": "api/users", "methods": ["GET"]}]}

    def test_loads_from_stdin(self) -> None:
        with patch("routesync.sources.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(json.dumps([{"uri": "a"}]))
            result = load_document("-")
        assert result == [{"uri": "a"}]

    def test_empty_stdin_raises(self) -> None:
        with patch("routesync.sources.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("  ")
            with pytest.raises(ManifestError, match="No input"):
                load_document("-")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="not found"):
            load_document(str(tmp_path / "nope.json"))

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        manifest = tmp_path / "routes.json"
        manifest.write_text("", encoding="utf-8")
        with pytest.raises(ManifestError, match="empty"):
            load_document(str(manifest))


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


class TestLoadFromUrl:
    def test_loads_json(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            json={"routes": []},
            request=httpx.Request("GET", "https://app.test/routes.json"),
        )
        with patch("routesync.sources.loader.httpx.get", return_value=mock_response):
            assert _load_from_url("https://app.test/routes.json") == {"routes": []}

    def test_http_error_raises(self) -> None:
        mock_response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://app.test/missing.json"),
        )
        with patch("routesync.sources.loader.httpx.get", return_value=mock_response):
            with pytest.raises(ManifestError, match="HTTP 404"):
                _load_from_url("https://app.test/missing.json")

    def test_connection_error_raises(self) -> None:
        with patch(
            "routesync.sources.loader.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(ManifestError, match="Failed to fetch"):
                _load_from_url("https://unreachable.test/routes.json")


# ---------------------------------------------------------------------------
# _parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    def test_json_without_hint(self) -> None:
        assert _parse_content('{"a": 1}') == {"a": 1}

    def test_yaml_fallback(self) -> None:
        assert _parse_content("a: 1\nb: [x]") == {"a": 1, "b": ["x"]}

    def test_invalid_json_with_json_hint(self) -> None:
        with pytest.raises(ManifestError, match="Invalid JSON"):
            _parse_content("{not json", hint="json")

    def test_scalar_document_rejected(self) -> None:
        with pytest.raises(ManifestError, match="object or list"):
            _parse_content("just a string")
