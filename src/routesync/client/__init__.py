"""HTTP client for the Postman collections API.

Classes:
    :class:`PostmanClient` -- blocking client backed by :class:`httpx.Client`
    with retry, error mapping, and the publish (sync) policy.

Example::

    from routesync.client import PostmanClient

    with PostmanClient(api_key) as client:
        collections = client.list()
"""

from routesync.client.postman import PostmanClient, SyncResult

__all__ = ["PostmanClient", "SyncResult"]
