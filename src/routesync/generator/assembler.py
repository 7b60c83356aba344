"""Collection assembly -- routes in, Postman collection out.

:class:`CollectionAssembler` walks the route table once per generation
cycle, filters and groups it (see :mod:`routesync.generator.routes`), and
emits one :class:`~routesync.models.RequestItem` per route inside a folder
per group.

Per-route request construction:

* **Method** -- the first declared method other than ``HEAD`` and
  ``OPTIONS`` (``GET`` when nothing else is left).
* **Name** -- the route name with dots turned into spaces and title-cased,
  or, for unnamed routes, the URI with its parameters removed.
* **URL** -- ``{{base_url}}`` plus the URI, every ``{param}`` / ``{param?}``
  segment becoming a ``:param`` path variable with a guessed example.
* **Headers** -- ``Accept: application/json``, plus
  ``Content-Type: application/json`` for POST, PUT and PATCH.
* **Body** -- only for POST, PUT and PATCH: the example payload synthesised
  from the handler's validation rules, or ``{}`` when it has none.

Assembly is total: any route list, including an empty one, yields a
collection. A rule provider that fails for one handler is treated as
having no rules for it; an unreadable rule manifest raises
:class:`~routesync.exceptions.ManifestError`.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Callable, Optional

from routesync.exceptions import ManifestError
from routesync.generator.routes import filter_routes, group_routes
from routesync.models import (
    Collection,
    CollectionInfo,
    CollectionVariable,
    Folder,
    GroupBy,
    Header,
    RawBody,
    RequestItem,
    RequestSpec,
    RequestUrl,
    RouteDescriptor,
    Settings,
    UrlVariable,
)
from routesync.rules.body import listify, synthesize
from routesync.rules.interpreter import interpret_rules
from routesync.sources.rules import RuleProvider

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
IGNORED_METHODS = ("HEAD", "OPTIONS")
EXAMPLE_UUID = "123e4567-e89b-12d3-a456-426614174000"

_PARAMETER = re.compile(r"\{([^}]+)\}")


class CollectionAssembler:
    """Builds a :class:`~routesync.models.Collection` from route descriptors.

    Args:
        settings: Project settings; ``routes``, ``request_body`` and
            ``collection`` are consulted.
        rule_provider: Source of validation rules for request bodies. When
            ``None`` every body is ``{}``.
        id_factory: Produces the collection's ``_postman_id``. A fresh UUID4
            per assembly by default.
        now: Clock for date examples; defaults to the current time.

    Example::

        assembler = CollectionAssembler(settings, ManifestRuleProvider("rules.json"))
        collection = assembler.assemble(source.list_routes())
        document = collection.to_document()
    """

    def __init__(
        self,
        settings: Settings,
        rule_provider: Optional[RuleProvider] = None,
        *,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        now: Optional[datetime] = None,
    ) -> None:
        self._settings = settings
        self._rule_provider = rule_provider
        self._id_factory = id_factory
        self._now = now

    def assemble(
        self,
        routes: Iterable[RouteDescriptor],
        group_by: Optional[GroupBy] = None,
    ) -> Collection:
        """Assemble the collection for *routes*.

        Args:
            routes: The application's routes, in declaration order.
            group_by: Overrides ``settings.routes.group_by`` when given.

        Returns:
            A new collection with a freshly generated ``_postman_id``.
        """
        config = self._settings.routes
        kept = filter_routes(routes, config)
        groups = group_routes(kept, group_by or config.group_by)

        folders = [
            Folder(name=name, item=[self.build_request(route) for route in members])
            for name, members in groups
        ]

        meta = self._settings.collection
        return Collection(
            info=CollectionInfo(
                name=meta.name,
                description=meta.description,
                schema_url=meta.schema_url,
                postman_id=self._id_factory(),
            ),
            item=folders,
            variable=[CollectionVariable(key="base_url", value=meta.base_url)],
        )

    def build_request(self, route: RouteDescriptor) -> RequestItem:
        """Build the request item for a single route."""
        method = primary_method(route.methods)
        return RequestItem(
            name=request_name(route),
            request=RequestSpec(
                method=method,
                header=build_headers(method),
                url=build_url(route.uri),
                body=self.request_body(route, method),
            ),
        )

    def request_body(self, route: RouteDescriptor, method: str) -> Optional[RawBody]:
        """Raw JSON body for *route*, or ``None`` for methods that send none."""
        if method not in BODY_METHODS:
            return None

        payload = self.example_payload(route)
        if payload is None:
            return RawBody(raw="{}")
        return RawBody(raw=render_json(payload))

    def example_payload(self, route: RouteDescriptor) -> Optional[dict[str, Any]]:
        """Synthesise the example body from the handler's rules.

        Returns ``None`` when no rules can be resolved for the handler.
        """
        if self._rule_provider is None or not route.handler:
            return None
        try:
            rules = self._rule_provider.extract_rules(route.handler)
        except ManifestError:
            raise
        except Exception as exc:
            logger.debug("Rule extraction failed for %s: %s", route.handler, exc)
            return None
        if rules is None:
            return None

        body_config = self._settings.request_body
        fields = interpret_rules(
            rules,
            body_config.example_values,
            generate_examples=body_config.generate_examples,
            now=self._now,
        )
        return synthesize(fields, required_only=body_config.required_only)


def assemble(
    routes: Iterable[RouteDescriptor],
    rule_provider: Optional[RuleProvider],
    group_by: Optional[GroupBy],
    settings: Settings,
) -> Collection:
    """Functional shortcut for :meth:`CollectionAssembler.assemble`."""
    return CollectionAssembler(settings, rule_provider).assemble(routes, group_by)


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def primary_method(methods: Iterable[str]) -> str:
    """First method that is not ``HEAD`` or ``OPTIONS``, else ``GET``."""
    for method in methods:
        upper = method.upper()
        if upper not in IGNORED_METHODS:
            return upper
    return "GET"


_WORD_START = re.compile(r"(?<![^\W\d_])(?<!')([^\W\d_])")


def _title(text: str) -> str:
    """Collapse whitespace and title-case every letter that follows a non-letter.

    ``password-reset`` becomes ``Password-Reset`` and ``bulk_delete`` becomes
    ``Bulk_Delete``; an apostrophe does not start a new word.
    """
    collapsed = " ".join(text.split()).lower()
    return _WORD_START.sub(lambda match: match.group(1).upper(), collapsed)


def request_name(route: RouteDescriptor) -> str:
    """Human-readable request name.

    ``users.show`` becomes ``Users Show``. Unnamed routes are named after
    their URI: ``api/user-profiles/{id}`` becomes ``Api User Profiles``.
    """
    if route.name:
        return _title(route.name.replace(".", " ")) or "Request"

    uri = _PARAMETER.sub("", route.uri.strip("/")).strip("/")
    for separator in ("/", "-", "_"):
        uri = uri.replace(separator, " ")
    return _title(uri) or "Request"


def path_variable_example(name: str) -> str:
    """Guess an example value for a path parameter from its name."""
    # "uuid" contains "id", so it is checked first.
    if "uuid" in name:
        return EXAMPLE_UUID
    if "id" in name:
        return "1"
    if "slug" in name:
        return "example-slug"
    return "value"


def build_url(uri: str) -> RequestUrl:
    """Build the Postman URL object for a route URI."""
    segments: list[str] = []
    variables: list[UrlVariable] = []

    for segment in uri.split("/"):
        if not segment:
            continue
        match = _PARAMETER.search(segment)
        if match:
            name = match.group(1).rstrip("?")
            segments.append(f":{name}")
            variables.append(UrlVariable(key=name, value=path_variable_example(name)))
        else:
            segments.append(segment)

    return RequestUrl(
        raw="{{base_url}}/" + "/".join(segments),
        path=segments,
        variable=variables,
    )


def build_headers(method: str) -> list[Header]:
    headers = [Header(key="Accept", value="application/json")]
    if method in BODY_METHODS:
        headers.append(Header(key="Content-Type", value="application/json"))
    return headers


def render_json(payload: Any) -> str:
    """Pretty-print an example body as it appears in the collection."""
    return json.dumps(listify(payload), indent=4, ensure_ascii=False)
