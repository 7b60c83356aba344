"""Exception hierarchy for routesync.

All exceptions inherit from :class:`RoutesyncError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`routesync.exit_codes`.
The top-level error handler in :func:`routesync.app.main` catches
``RoutesyncError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

The collection core (rule interpretation, body synthesis, assembly and
reconciliation) never raises these: malformed input there degrades to a
conservative default. They are raised only at the boundaries -- manifests,
settings, and the Postman API.

Subclass hierarchy::

    RoutesyncError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ManifestError       (exit 7)
    +-- ConfigError         (exit 1)
"""

from routesync.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MANIFEST_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class RoutesyncError(Exception):
    """Base exception for all routesync errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`routesync.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RoutesyncError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(RoutesyncError):
    """Raised when the Postman API rejects the API key (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(RoutesyncError):
    """Raised when the Postman API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(RoutesyncError):
    """Raised when the Postman API returns a 5xx or an unexpected 4xx."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(RoutesyncError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ManifestError(RoutesyncError):
    """Raised when a route or rule manifest cannot be loaded or has the wrong shape."""

    exit_code = EXIT_MANIFEST_ERROR


class ConfigError(RoutesyncError):
    """Raised for configuration problems (invalid settings file, unresolvable credential source)."""

    exit_code = EXIT_GENERIC_FAILURE
