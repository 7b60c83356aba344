"""Collection generator -- turn a route table into a Postman collection.

Typical usage::

    from routesync.generator import CollectionAssembler

    assembler = CollectionAssembler(settings, rule_provider)
    collection = assembler.assemble(route_source.list_routes())

Sub-modules:

* :mod:`~routesync.generator.routes` -- Filter routes by prefix, exclude
  globs and middleware, then group them into top-level folders.
* :mod:`~routesync.generator.assembler` -- Build one request item per route
  (method, name, URL variables, headers, example body) and wrap the folders
  in a collection.
"""

from routesync.generator.assembler import CollectionAssembler, assemble
from routesync.generator.routes import filter_routes, group_routes

__all__ = ["CollectionAssembler", "assemble", "filter_routes", "group_routes"]
