"""Rule providers -- the validation rules declared for each route handler.

The assembler asks a :class:`RuleProvider` for the rules of a handler only
when it builds a request body. The answer is a ``field -> tokens`` mapping,
or ``None`` when the handler has no validation rules to speak of.

:class:`ManifestRuleProvider` reads a JSON/YAML rule manifest in one of two
layouts.

**Flat** -- handler id to field rules::

    App\\Http\\Controllers\\UserController@store:
      email: required|email
      age: [integer, "min:18"]

**Indirect** -- handlers point at a named rule set (a form request class),
so several actions can share one::

    handlers:
      App\\Http\\Controllers\\UserController@store: App\\Http\\Requests\\StoreUser
    requests:
      App\\Http\\Requests\\StoreUser:
        email: required|email
        role:
          - required
          - {rule: App\\Rules\\AllowedRole}

Rules are either a pipe-delimited string or a list; list entries that are
objects become opaque tokens (see :func:`~routesync.rules.interpreter.parse_rule`).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional, Union

from routesync.exceptions import ManifestError
from routesync.models import OpaqueToken, StringToken
from routesync.rules.interpreter import normalize_rules
from routesync.sources.loader import load_document

logger = logging.getLogger(__name__)

RuleMap = dict[str, list[Union[StringToken, OpaqueToken]]]


class RuleProvider(ABC):
    """Looks up the validation rules for a route handler."""

    @abstractmethod
    def extract_rules(self, handler_id: Optional[str]) -> Optional[RuleMap]:
        """Return the handler's rules as ``field -> tokens``.

        Args:
            handler_id: The route's handler (``"Controller@action"``), or
                ``None`` for closures.

        Returns:
            The tokenized rules, ``{}`` when the handler's rules exist but
            could not be read, or ``None`` when the handler has none.
        """
        ...


class NullRuleProvider(RuleProvider):
    """A provider that knows no rules; every body becomes ``{}``."""

    def extract_rules(self, handler_id: Optional[str]) -> Optional[RuleMap]:
        return None


class ManifestRuleProvider(RuleProvider):
    """Serves rules from a rule manifest, loaded once on first use.

    Args:
        source: File path, URL, or ``-`` for stdin.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._handlers: Optional[dict[str, Any]] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ManifestRuleProvider:
        """Build a provider from an already-loaded manifest."""
        provider = cls("<memory>")
        provider._handlers = _index_manifest(data)
        return provider

    def extract_rules(self, handler_id: Optional[str]) -> Optional[RuleMap]:
        if not handler_id:
            return None
        handlers = self.load()

        raw = handlers.get(handler_id)
        if raw is None and "@" in handler_id:
            controller, action = handler_id.split("@", 1)
            if action == "__invoke":
                raw = handlers.get(controller)
        if raw is None:
            return None

        if not isinstance(raw, Mapping):
            logger.debug("Rules for %s are not a mapping; using no fields", handler_id)
            return {}
        return normalize_rules(raw)

    def load(self) -> dict[str, Any]:
        """Read and index the manifest if that has not happened yet.

        Call this up front to surface an unreadable manifest before any
        request is built.

        Raises:
            ManifestError: If the manifest cannot be loaded or has the wrong shape.
        """
        if self._handlers is None:
            data = load_document(self.source)
            if not isinstance(data, Mapping):
                raise ManifestError(f"Rule manifest {self.source} must be an object")
            self._handlers = _index_manifest(data)
        return self._handlers


def _index_manifest(data: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve either manifest layout into ``handler id -> raw field rules``."""
    if "handlers" not in data and "requests" not in data:
        return {str(key): value for key, value in data.items()}

    handlers = data.get("handlers") or {}
    requests = data.get("requests") or {}
    if not isinstance(handlers, Mapping) or not isinstance(requests, Mapping):
        raise ManifestError("'handlers' and 'requests' must be objects")

    index: dict[str, Any] = {}
    for handler_id, target in handlers.items():
        if isinstance(target, str):
            if target in requests:
                index[str(handler_id)] = requests[target]
            else:
                logger.debug("Handler %s names unknown rule set %s", handler_id, target)
        else:
            index[str(handler_id)] = target
    return index
