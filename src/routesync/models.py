"""Canonical Pydantic models shared across all routesync modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- loaded from the project settings file:
    :class:`RoutesConfig`, :class:`RequestBodyConfig`, :class:`MergeConfig`,
    :class:`CollectionConfig`, :class:`RemoteConfig`, :class:`StorageConfig`,
    :class:`SourcesConfig`, and the top-level :class:`Settings`.

**Input models** -- produced by the route and rule manifests and consumed by
the collection core:
    :class:`RouteDescriptor`, :class:`PathParameter`, :class:`StringToken`,
    :class:`OpaqueToken` (together :data:`RuleToken`), :class:`FieldType`,
    and :class:`FieldDescriptor`.

**Collection models** -- the Postman v2.1 tree emitted by the assembler:
    :class:`CollectionInfo`, :class:`Header`, :class:`UrlVariable`,
    :class:`RequestUrl`, :class:`RawBody`, :class:`RequestSpec`,
    :class:`RequestItem`, :class:`Folder`, :class:`CollectionVariable`, and
    :class:`Collection`. Field declaration order is the wire key order, so
    :meth:`Collection.to_document` renders keys exactly as Postman exports
    them.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


POSTMAN_SCHEMA_V21 = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"

DEFAULT_EXAMPLE_VALUES: dict[str, Any] = {
    "email": "user@example.com",
    "url": "https://example.com",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
    "date": "2024-01-01",
    "datetime": "2024-01-01 12:00:00",
    "boolean": True,
    "integer": 1,
    "numeric": 1.0,
    "string": "",
    "array": [],
}
"""Per-type example values used when the settings do not override a type."""


# --- Configuration ---


class GroupBy(str, enum.Enum):
    """How routes are grouped into top-level folders."""

    CONTROLLER = "controller"
    PREFIX = "prefix"
    NONE = "none"


class RoutesConfig(BaseModel):
    """Which routes are included in the collection and how they are grouped.

    A route is kept when its URI starts with ``prefix`` (if set), matches none
    of the ``exclude`` globs, and -- when ``middleware`` is non-empty -- runs
    at least one of the listed middleware.
    """

    prefix: str = Field(default="", description="Only include URIs starting with this")
    exclude: list[str] = Field(
        default_factory=lambda: ["sanctum/*", "telescope/*", "horizon/*"],
        description="Glob patterns (*, ?) matched against the full URI",
    )
    middleware: list[str] = Field(
        default_factory=list, description="Keep routes running any of these"
    )
    group_by: GroupBy = GroupBy.CONTROLLER


class RequestBodyConfig(BaseModel):
    """How example request bodies are generated from validation rules."""

    generate_examples: bool = Field(
        default=True, description="Fill leaves with example values (else null)"
    )
    required_only: bool = Field(
        default=False, description="Only include fields marked required"
    )
    example_values: dict[str, Any] = Field(
        default_factory=lambda: dict(DEFAULT_EXAMPLE_VALUES),
        description="Example value per field type",
    )


class MergeConfig(BaseModel):
    """Reconciliation with the previously published collection."""

    enabled: bool = True
    preserve_fields: list[str] = Field(
        default_factory=lambda: [
            "request.description",
            "request.header",
            "request.auth",
            "event",
        ],
        description="Dotted paths copied from the prior item when present",
    )
    download_before_update: bool = Field(
        default=True,
        description="Use the remote collection as the prior (else the local file)",
    )


class CollectionConfig(BaseModel):
    """Metadata written into the collection's ``info`` and ``variable`` sections."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = "API Collection"
    description: str = "Auto-generated API collection"
    base_url: str = "http://localhost"
    schema_url: str = Field(default=POSTMAN_SCHEMA_V21, alias="schema")


class RemoteConfig(BaseModel):
    """Postman API connection settings.

    The API key itself never lives in the settings file: ``api_key_source``
    is a credential source descriptor resolved by
    :func:`~routesync.config.resolve_credential`.
    """

    api_key_source: str = Field(
        default="env:POSTMAN_API_KEY",
        description="Credential source: env:VAR or file:/path",
    )
    collection_id: Optional[str] = None
    workspace_id: Optional[str] = None
    api_base_url: str = "https://api.getpostman.com"
    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Max retry attempts")
    auto_push: bool = Field(
        default=False, description="Publish after every generate"
    )


class StorageConfig(BaseModel):
    """Where generated collections are written locally."""

    storage_path: str = "storage/postman"
    filename_pattern: str = Field(
        default="{name}.postman_collection.json",
        description="Supports {name}, {date} and {time}",
    )


class SourcesConfig(BaseModel):
    """Location of the route and rule manifests exported by the application."""

    routes: str = "routes.json"
    rules: Optional[str] = None


class Settings(BaseModel):
    """Project settings loaded from ``routesync.yaml`` / ``routesync.json``.

    See :func:`~routesync.config.load_settings` for the precedence chain.
    """

    routes: RoutesConfig = Field(default_factory=RoutesConfig)
    request_body: RequestBodyConfig = Field(default_factory=RequestBodyConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)


# --- Routes and rules ---


class PathParameter(BaseModel):
    """A ``{name}`` or ``{name?}`` placeholder in a route URI."""

    model_config = ConfigDict(frozen=True)

    name: str
    required: bool = True


class RouteDescriptor(BaseModel):
    """One registered HTTP endpoint of the host application.

    ``handler`` identifies the code serving the route: ``"Controller@action"``,
    a bare invokable controller name, or ``None`` for closures. It is both the
    grouping key source and the lookup key for validation rules.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])
    name: Optional[str] = None
    handler: Optional[str] = None
    middleware: list[str] = Field(default_factory=list)
    parameters: list[PathParameter] = Field(default_factory=list)

    @property
    def controller(self) -> Optional[str]:
        """The controller part of :attr:`handler`, or ``None``."""
        if not self.handler:
            return None
        return self.handler.split("@", 1)[0] or None

    @property
    def action(self) -> Optional[str]:
        """The action part of :attr:`handler` (``"__invoke"`` for bare controllers)."""
        if not self.handler:
            return None
        if "@" in self.handler:
            return self.handler.split("@", 1)[1] or None
        return "__invoke"


class StringToken(BaseModel):
    """A parsed string rule such as ``required`` or ``min:3``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    name: str
    args: list[str] = Field(default_factory=list)


class OpaqueToken(BaseModel):
    """A custom rule object that cannot be interpreted.

    It never affects the field type, but ``implies_required`` still marks
    the field required.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["opaque"] = "opaque"
    label: str = ""
    implies_required: bool = False


RuleToken = Annotated[Union[StringToken, OpaqueToken], Field(discriminator="kind")]


class FieldType(str, enum.Enum):
    """Type tag of an interpreted input field."""

    STRING = "string"
    EMAIL = "email"
    URL = "url"
    UUID = "uuid"
    DATE = "date"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    ARRAY = "array"
    JSON = "json"


class FieldDescriptor(BaseModel):
    """Interpreted type, constraints, and example value of one input field.

    ``path`` is dot notation and may contain ``*`` or numeric segments
    (``items.*.sku``). ``required`` only ever goes from ``False`` to ``True``
    while tokens are interpreted.
    """

    path: str
    required: bool = False
    type: FieldType = FieldType.STRING
    format: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    enum_values: Optional[list[str]] = None
    example: Any = ""


# --- Collection tree ---


class CollectionInfo(BaseModel):
    """The collection ``info`` block."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    schema_url: str = Field(default=POSTMAN_SCHEMA_V21, alias="schema")
    postman_id: str = Field(alias="_postman_id")


class Header(BaseModel):
    key: str
    value: str
    type: str = "text"


class UrlVariable(BaseModel):
    """A ``:name`` path variable with its example value."""

    key: str
    value: str
    description: str = ""


class RequestUrl(BaseModel):
    raw: str
    host: list[str] = Field(default_factory=lambda: ["{{base_url}}"])
    path: list[str] = Field(default_factory=list)
    variable: list[UrlVariable] = Field(default_factory=list)


class RawBody(BaseModel):
    """A raw JSON request body as Postman stores it."""

    mode: str = "raw"
    raw: str = "{}"
    options: dict[str, Any] = Field(
        default_factory=lambda: {"raw": {"language": "json"}}
    )


class RequestSpec(BaseModel):
    method: str
    header: list[Header] = Field(default_factory=list)
    url: RequestUrl
    body: Optional[RawBody] = None


class RequestItem(BaseModel):
    """A leaf request node."""

    name: str
    request: RequestSpec
    response: list[Any] = Field(default_factory=list)


class Folder(BaseModel):
    """A named folder node holding requests or further folders."""

    name: str
    item: list[Node] = Field(default_factory=list)


Node = Union[Folder, RequestItem]


class CollectionVariable(BaseModel):
    key: str
    value: str
    type: str = "string"


class Collection(BaseModel):
    """A complete Postman v2.1 collection.

    Produced fresh by :class:`~routesync.generator.assembler.CollectionAssembler`
    on every generation cycle.
    """

    info: CollectionInfo
    item: list[Node] = Field(default_factory=list)
    variable: list[CollectionVariable] = Field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        """Render the collection as a JSON-compatible dict in wire key order."""
        return self.model_dump(mode="json", by_alias=True)


Folder.model_rebuild()
Collection.model_rebuild()
