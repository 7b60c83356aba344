"""Built-in CLI sub-commands for routesync.

* :mod:`~routesync.commands.generate` -- ``generate``, ``push`` and
  ``routes``, registered directly on the root app.
* :mod:`~routesync.commands.collections` -- remote collection management.
* :mod:`~routesync.commands.config` -- view and create the settings file.
* :mod:`~routesync.commands.common` -- helpers shared by the commands:
  settings resolution and construction of sources and the API client.
"""
