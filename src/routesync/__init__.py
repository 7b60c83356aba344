"""routesync -- Keep an API collection in step with an application's routes.

This package turns a web application's declared HTTP routes, plus the
validation rules attached to each handler, into a Postman v2.1 collection
document. It keeps that document synchronised both as a local JSON file and
against the Postman API, merging each fresh generation with the previously
published collection so that hand-curated fields survive.

Typical workflow::

    routesync config init                 # write routesync.yaml
    routesync generate --routes routes.json --rules rules.json --push

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Project settings, environment overrides, credential sources.
    pipeline: One generation cycle (assemble, reconcile, save, publish).
    rules: Validation-rule interpretation and example body synthesis.
    generator: Route filtering, grouping, and collection assembly.
    merge: Reconciliation of a fresh collection with a prior one.
    sources: Route and rule manifests (the host application's side).
    client: Postman API client.
    storage: Local collection files.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and logging setup.
"""

__version__ = "0.1.0"
