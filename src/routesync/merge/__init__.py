"""Merge a regenerated collection with the previously published one.

See :mod:`~routesync.merge.reconciler` for the matching and preservation rules.
"""

from routesync.merge.reconciler import reconcile

__all__ = ["reconcile"]
