"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~routesync.exceptions.RoutesyncError` subclass.
Git hooks and CI scripts can inspect the exit code to tell a rejected API
key apart from a broken route manifest without parsing stderr.

Example::

    $ routesync generate --push
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the Postman API key was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The Postman API rejected the API key."""

EXIT_NOT_FOUND = 4
"""The requested remote collection was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Postman API returned an error response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_MANIFEST_ERROR = 7
"""A route or rule manifest could not be read or parsed."""
