"""Validation rules -- interpret rule tokens and synthesise example bodies.

Sub-modules:

* :mod:`~routesync.rules.interpreter` -- Tokenize raw rules and interpret a
  field's tokens into a :class:`~routesync.models.FieldDescriptor` with an
  example value.
* :mod:`~routesync.rules.body` -- Place interpreted fields into a nested
  example payload.

Typical usage::

    from routesync.rules import interpret_rules, synthesize

    fields = interpret_rules(rule_tokens, settings.request_body.example_values)
    body = synthesize(fields, required_only=False)
"""

from routesync.rules.body import synthesize
from routesync.rules.interpreter import interpret, interpret_rules, tokenize

__all__ = ["interpret", "interpret_rules", "synthesize", "tokenize"]
