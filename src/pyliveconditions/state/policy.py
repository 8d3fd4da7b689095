"""Delta merge policy.

This module intentionally contains *no* storage: it only decides what a
delta does to a collection given whether the record already exists.
"""

from __future__ import annotations

from enum import StrEnum

from pyliveconditions.models.delta import DeltaAction


class Mutation(StrEnum):
    INSERT = "insert"
    REPLACE = "replace"
    REMOVE = "remove"
    NOOP = "noop"


def resolve_mutation(action: DeltaAction, *, exists: bool) -> Mutation:
    """Map an incoming action onto the mutation to perform.

    Policy:
    - create of a known id replaces it in place (duplicate creates are idempotent)
    - update of an unknown id inserts it (self-heals a missed create)
    - delete of an unknown id does nothing (it may already have expired locally)
    """
    if action == DeltaAction.DELETE:
        return Mutation.REMOVE if exists else Mutation.NOOP
    if exists:
        return Mutation.REPLACE
    return Mutation.INSERT


def effective_action(mutation: Mutation) -> DeltaAction | None:
    """The action subscribers are told about, or ``None`` for a no-op."""
    return {
        Mutation.INSERT: DeltaAction.CREATE,
        Mutation.REPLACE: DeltaAction.UPDATE,
        Mutation.REMOVE: DeltaAction.DELETE,
    }.get(mutation)
