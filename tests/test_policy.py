from __future__ import annotations

import pytest

from pyliveconditions.models.delta import DeltaAction
from pyliveconditions.state.policy import Mutation, effective_action, resolve_mutation


@pytest.mark.parametrize(
    ("action", "exists", "expected"),
    [
        (DeltaAction.CREATE, False, Mutation.INSERT),
        (DeltaAction.CREATE, True, Mutation.REPLACE),
        (DeltaAction.UPDATE, False, Mutation.INSERT),
        (DeltaAction.UPDATE, True, Mutation.REPLACE),
        (DeltaAction.DELETE, True, Mutation.REMOVE),
        (DeltaAction.DELETE, False, Mutation.NOOP),
    ],
)
def test_resolve_mutation(action: DeltaAction, exists: bool, expected: Mutation) -> None:
    assert resolve_mutation(action, exists=exists) == expected


def test_effective_action_for_noop_is_none() -> None:
    assert effective_action(Mutation.NOOP) is None
    assert effective_action(Mutation.REPLACE) == DeltaAction.UPDATE
