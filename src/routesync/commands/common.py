"""Helpers shared by the CLI commands."""

from __future__ import annotations

from typing import Any, Optional

from routesync.client.postman import PostmanClient
from routesync.config import load_settings, resolve_credential
from routesync.models import Settings
from routesync.sources.routes import ManifestRouteSource
from routesync.sources.rules import ManifestRuleProvider, NullRuleProvider, RuleProvider


def settings_from_options(
    config_path: Optional[str] = None,
    **overrides: Any,
) -> Settings:
    """Load settings with CLI flag overrides.

    Keyword names use ``__`` for nesting (``routes__group_by``); ``None``
    values mean the flag was not given.
    """
    dotted = {key.replace("__", "."): value for key, value in overrides.items()}
    return load_settings(config_path, dotted)


def route_source(settings: Settings) -> ManifestRouteSource:
    return ManifestRouteSource(settings.sources.routes)


def rule_provider(settings: Settings) -> RuleProvider:
    """Rule provider for ``sources.rules``, with the manifest already loaded.

    Raises:
        ManifestError: If the configured rule manifest cannot be read.
    """
    if settings.sources.rules:
        provider = ManifestRuleProvider(settings.sources.rules)
        provider.load()
        return provider
    return NullRuleProvider()


def build_client(settings: Settings) -> PostmanClient:
    """Create a Postman client with the resolved API key.

    Raises:
        ConfigError: If the API key source cannot be resolved.
    """
    api_key = resolve_credential(settings.remote.api_key_source)
    return PostmanClient.from_config(settings.remote, api_key)
