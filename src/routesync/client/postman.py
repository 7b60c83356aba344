"""Postman API client -- the remote collection store.

:class:`PostmanClient` wraps :class:`httpx.Client` with the ``X-Api-Key``
header, retry with exponential backoff (1 s, 2 s, 4 s, ...) on 5xx and
network errors, and mapping of error statuses to typed exceptions:

* 401 / 403 -> :class:`~routesync.exceptions.AuthError`
* 404 -> :class:`~routesync.exceptions.NotFoundError`
* 5xx and other 4xx -> :class:`~routesync.exceptions.ServerError`
* network failure after retries -> :class:`~routesync.exceptions.ConnectionError_`

On top of the raw collection operations, :meth:`PostmanClient.sync`
implements the publish policy: update the configured collection if it
exists, else update the collection with the same name, else create one.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from routesync.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    RoutesyncError,
    ServerError,
)
from routesync.models import RemoteConfig
from routesync.output import get_output


@dataclass
class SyncResult:
    """Outcome of :meth:`PostmanClient.sync`."""

    action: str
    """``"updated"`` or ``"created"``."""
    collection_id: Optional[str]
    response: dict[str, Any] = field(default_factory=dict)


class PostmanClient:
    """Synchronous client for the Postman collections API.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        api_key: Postman API key, sent as ``X-Api-Key``.
        base_url: API root, ``https://api.getpostman.com`` by default.
        workspace_id: When set, passed as the ``workspace`` query parameter
            on create and list.
        timeout: Request timeout in seconds.
        max_retries: Retry attempts for 5xx responses and network errors.
        transport: Custom httpx transport (tests use
            :class:`httpx.MockTransport`).
        sleep: Backoff sleep function.

    Example::

        with PostmanClient.from_config(settings.remote, api_key) as client:
            result = client.sync(document, settings.remote.collection_id)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.getpostman.com",
        workspace_id: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._workspace_id = workspace_id
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_config(
        cls,
        config: RemoteConfig,
        api_key: str,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> PostmanClient:
        """Build a client from the ``remote`` settings section."""
        return cls(
            api_key,
            base_url=config.api_base_url,
            workspace_id=config.workspace_id,
            timeout=config.timeout,
            max_retries=config.max_retries,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> PostmanClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"X-Api-Key": self._api_key, "Accept": "application/json"},
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Collection operations
    # ------------------------------------------------------------------ #

    def fetch(self, collection_id: str) -> Optional[dict[str, Any]]:
        """Download a collection document.

        Returns:
            The ``collection`` object, or ``None`` if it does not exist.
        """
        try:
            response = self.request("GET", f"/collections/{collection_id}")
        except NotFoundError:
            return None
        collection = _json(response).get("collection")
        return collection if isinstance(collection, dict) else None

    def create(self, document: dict[str, Any]) -> dict[str, Any]:
        """Create a new collection. Returns the ``collection`` summary (id, uid, name)."""
        response = self.request(
            "POST",
            "/collections",
            params=self._workspace_params(),
            json_body={"collection": document},
        )
        return _json(response).get("collection") or {}

    def update(self, collection_id: str, document: dict[str, Any]) -> dict[str, Any]:
        """Replace an existing collection. Returns the ``collection`` summary."""
        response = self.request(
            "PUT",
            f"/collections/{collection_id}",
            json_body={"collection": document},
        )
        return _json(response).get("collection") or {}

    def list(self) -> list[dict[str, Any]]:
        """List the collections visible to the API key (scoped to the workspace if set)."""
        response = self.request("GET", "/collections", params=self._workspace_params())
        collections = _json(response).get("collections") or []
        return [c for c in collections if isinstance(c, dict)]

    def delete(self, collection_id: str) -> bool:
        """Delete a collection. Returns ``False`` if it did not exist."""
        try:
            self.request("DELETE", f"/collections/{collection_id}")
        except NotFoundError:
            return False
        return True

    def find_by_name(self, name: str) -> Optional[dict[str, Any]]:
        """First listed collection whose name equals *name* exactly."""
        for collection in self.list():
            if collection.get("name") == name:
                return collection
        return None

    def sync(self, document: dict[str, Any], collection_id: Optional[str] = None) -> SyncResult:
        """Publish *document*, updating an existing collection where possible.

        Resolution order:

        1. *collection_id*, if given and the collection exists.
        2. A collection with the same ``info.name`` (updated by its ``uid``).
        3. A newly created collection.
        """
        output = get_output()

        if collection_id and self.fetch(collection_id) is not None:
            output.debug(f"Updating configured collection {collection_id}")
            return SyncResult("updated", collection_id, self.update(collection_id, document))

        name = (document.get("info") or {}).get("name")
        if name:
            existing = self.find_by_name(name)
            if existing is not None:
                target = existing.get("uid") or existing.get("id")
                if target:
                    output.debug(f"Updating collection {target} matched by name {name!r}")
                    return SyncResult("updated", target, self.update(target, document))

        created = self.create(document)
        return SyncResult("created", created.get("uid") or created.get("id"), created)

    def validate_api_key(self) -> tuple[bool, Optional[str]]:
        """Check the key by listing collections.

        Returns:
            ``(True, None)`` on success, else ``(False, error message)``.
        """
        if not self._api_key:
            return False, "API key is not configured"
        try:
            self.list()
        except RoutesyncError as exc:
            return False, str(exc)
        return True, None

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a request with retry and error mapping.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On other 4xx, or 5xx after all retries.
            ConnectionError_: On network / timeout errors after all retries.
        """
        response = self._execute_with_retry(method, path, params or {}, json_body)
        _map_response_error(response)
        return response

    def _workspace_params(self) -> dict[str, Any]:
        if self._workspace_id:
            return {"workspace": self._workspace_id}
        return {}

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        json_body: Any,
    ) -> httpx.Response:
        """Execute the request, retrying 5xx and network errors with backoff."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        output = get_output()
        max_retries = self._max_retries

        for attempt in range(max_retries + 1):
            try:
                kwargs: dict[str, Any] = {"params": params}
                if json_body is not None:
                    kwargs["json"] = json_body
                response = self._client.request(method, path, **kwargs)

                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Server error {response.status_code}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    self._sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    self._sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection to Postman failed after {max_retries + 1} attempts: {exc}"
                ) from exc

        raise ServerError("Request failed after all retries")  # pragma: no cover


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise ServerError(f"Postman returned a non-JSON response: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    # Postman errors look like {"error": {"name": ..., "message": ...}}.
    try:
        detail = response.json()
        if isinstance(detail, dict):
            error = detail.get("error")
            if isinstance(error, dict):
                msg = error.get("message") or error.get("name") or ""
            else:
                msg = error or detail.get("message") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)
