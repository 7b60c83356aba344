"""Tests for routesync.pipeline -- the generate / merge / save / push cycle."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import pytest

from routesync.client.postman import PostmanClient
from routesync.exceptions import InvalidUsageError
from routesync.models import MergeConfig, RemoteConfig, RouteDescriptor, Settings
from routesync.output import OutputManager, set_output
from routesync.pipeline import count_requests, generate_collection, load_prior, run_cycle
from routesync.sources.routes import StaticRouteSource
from routesync.storage import CollectionStore

ROUTES = [
    RouteDescriptor(uri="api/users", methods=["GET", "HEAD"], name="users.index",
                    handler="UserController@index"),
    RouteDescriptor(uri="api/users/{user}", methods=["GET", "HEAD"], name="users.show",
                    handler="UserController@show"),
]


def _prior_with_description(description: str) -> dict[str, Any]:
    return {
        "info": {"name": "API Collection", "_postman_id": "old"},
        "item": [
            {
                "name": "UserController",
                "item": [
                    {"name": "Users Show", "request": {"description": description}},
                    {"name": "Users Legacy", "request": {"method": "GET"}},
                ],
            }
        ],
    }


def _client(handler) -> PostmanClient:
    return PostmanClient("k", max_retries=0, transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def _quiet() -> None:
    set_output(OutputManager(no_color=True, quiet=True))


class TestGenerateCollection:
    def test_document(self, settings: Settings) -> None:
        document = generate_collection(settings, StaticRouteSource(ROUTES))
        assert document["info"]["name"] == "API Collection"
        assert [f["name"] for f in document["item"]] == ["UserController"]
        assert count_requests(document) == 2


class TestLoadPrior:
    def test_local(self, tmp_path: Path, settings: Settings) -> None:
        store = CollectionStore(tmp_path)
        store.save({"item": []})
        assert load_prior(settings, store) == ({"item": []}, "local")

    def test_no_store(self, settings: Settings) -> None:
        assert load_prior(settings, None) == (None, None)

    def test_unreadable_local_file(
        self, tmp_path: Path, settings: Settings, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        caplog.set_level(logging.WARNING, logger="routesync.pipeline")
        assert load_prior(settings, CollectionStore(tmp_path)) == (None, None)
        assert "Could not read" in caplog.text

    def test_remote(self, tmp_path: Path) -> None:
        settings = Settings(remote=RemoteConfig(collection_id="c1"))

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/collections/c1"
            return httpx.Response(200, json={"collection": {"item": ["remote"]}})

        CollectionStore(tmp_path).save({"item": ["local"]})
        with _client(handler) as client:
            prior = load_prior(settings, CollectionStore(tmp_path), client)
        assert prior == ({"item": ["remote"]}, "remote")

    def test_remote_missing_does_not_fall_back(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        settings = Settings(remote=RemoteConfig(collection_id="c1"))
        CollectionStore(tmp_path).save({"item": ["local"]})
        caplog.set_level(logging.WARNING, logger="routesync.pipeline")
        handler = lambda r: httpx.Response(404, json={"error": {"message": "not found"}})
        with _client(handler) as client:
            assert load_prior(settings, CollectionStore(tmp_path), client) == (None, None)
        assert "not found remotely" in caplog.text

    def test_remote_error(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = Settings(remote=RemoteConfig(collection_id="c1"))
        caplog.set_level(logging.WARNING, logger="routesync.pipeline")
        with _client(lambda r: httpx.Response(401, json={"error": {"message": "bad key"}})) as client:
            assert load_prior(settings, None, client) == (None, None)
        assert "bad key" in caplog.text

    def test_download_disabled_uses_local(self, tmp_path: Path) -> None:
        settings = Settings(
            remote=RemoteConfig(collection_id="c1"),
            merge=MergeConfig(download_before_update=False),
        )
        CollectionStore(tmp_path).save({"item": ["local"]})

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with _client(handler) as client:
            assert load_prior(settings, CollectionStore(tmp_path), client)[1] == "local"


class TestRunCycle:
    def test_first_run_saves(self, tmp_path: Path, settings: Settings) -> None:
        store = CollectionStore(tmp_path)
        result = run_cycle(settings, StaticRouteSource(ROUTES), None, store)

        assert result.prior_source is None
        assert result.request_count == 2
        assert result.saved_path == tmp_path / "api-collection.postman_collection.json"
        assert json.loads(result.saved_path.read_text(encoding="utf-8")) == result.document

    def test_merges_with_last_saved(self, tmp_path: Path, settings: Settings) -> None:
        store = CollectionStore(tmp_path)
        store.save(_prior_with_description("curated"))

        result = run_cycle(settings, StaticRouteSource(ROUTES), None, store)

        assert result.prior_source == "local"
        users = result.document["item"][0]["item"]
        assert [i["name"] for i in users] == ["Users Index", "Users Show", "Users Legacy"]
        assert users[1]["request"]["description"] == "curated"
        assert users[1]["request"]["method"] == "GET"
        assert result.request_count == 3

    def test_merge_disabled(self, tmp_path: Path) -> None:
        settings = Settings(merge=MergeConfig(enabled=False))
        store = CollectionStore(tmp_path)
        store.save(_prior_with_description("curated"))

        result = run_cycle(settings, StaticRouteSource(ROUTES), None, store)

        assert result.prior_source is None
        assert result.request_count == 2

    def test_no_store_does_not_save(self, tmp_path: Path, settings: Settings) -> None:
        result = run_cycle(settings, StaticRouteSource(ROUTES), None, None)
        assert result.saved_path is None
        assert list(tmp_path.iterdir()) == []

    def test_push_requires_client(self, settings: Settings) -> None:
        with pytest.raises(InvalidUsageError):
            run_cycle(settings, StaticRouteSource(ROUTES), None, None, push=True)

    def test_push(self, tmp_path: Path, settings: Settings) -> None:
        sent: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"collections": []})
            sent.append(json.loads(request.content))
            return httpx.Response(200, json={"collection": {"id": "new", "uid": "u-new"}})

        with _client(handler) as client:
            result = run_cycle(
                settings, StaticRouteSource(ROUTES), None, CollectionStore(tmp_path), client, push=True
            )

        assert result.sync is not None
        assert result.sync.action == "created"
        assert sent == [{"collection": result.document}]


class TestCountRequests:
    def test_nested(self) -> None:
        document = {
            "item": [
                {"name": "A", "item": [{"name": "x", "request": {}}, {"name": "B", "item": [{"request": {}}]}]},
                {"name": "y", "request": {}},
                "junk",
            ]
        }
        assert count_requests(document) == 3

    def test_empty(self) -> None:
        assert count_requests({}) == 0
