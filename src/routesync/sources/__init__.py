"""Route and rule sources -- the host application's side of the pipeline.

Sub-modules:

* :mod:`~routesync.sources.loader` -- I/O layer (URL, file, stdin) with JSON
  and YAML detection.
* :mod:`~routesync.sources.routes` -- :class:`RouteSource` and the route
  manifest reader.
* :mod:`~routesync.sources.rules` -- :class:`RuleProvider` and the rule
  manifest reader.
"""

from routesync.sources.loader import load_document
from routesync.sources.routes import ManifestRouteSource, RouteSource, StaticRouteSource
from routesync.sources.rules import ManifestRuleProvider, NullRuleProvider, RuleProvider

__all__ = [
    "load_document",
    "ManifestRouteSource",
    "ManifestRuleProvider",
    "NullRuleProvider",
    "RouteSource",
    "RuleProvider",
    "StaticRouteSource",
]
