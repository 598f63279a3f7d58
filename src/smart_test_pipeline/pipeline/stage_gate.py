"""Stage gating: which workflow steps are reachable for a given state.

The functions here accept either a live `SessionState` or a `SessionSnapshot`
and never store anything, so the answer always reflects the data currently
held by the session.
"""

from typing import FrozenSet, Union

from smart_test_pipeline.models.data_models import Stage
from smart_test_pipeline.pipeline.session import SessionSnapshot, SessionState

StateView = Union[SessionState, SessionSnapshot]


def is_reachable(state: StateView, stage: Stage) -> bool:
    """Return whether the prerequisite data for `stage` is present."""
    if stage is Stage.SETUP:
        return True
    if stage is Stage.REPOSITORIES:
        return len(state.repositories) > 0
    if stage is Stage.FILES:
        return state.selected_repository is not None
    if stage is Stage.PLANS:
        return len(state.test_plans) > 0
    if stage is Stage.CODE:
        return bool(state.generated_code)
    raise ValueError(f"Unknown stage: {stage!r}")


def reachable_stages(state: StateView) -> FrozenSet[Stage]:
    return frozenset(stage for stage in Stage if is_reachable(state, stage))


def furthest_stage(state: StateView) -> Stage:
    return max(reachable_stages(state), key=lambda stage: stage.value)


def current_stage(state: StateView) -> Stage:
    """The stage to display.

    This is the stage the user last moved to when it is still reachable,
    otherwise the furthest reachable one.
    """
    if is_reachable(state, state.active_stage):
        return state.active_stage
    return furthest_stage(state)
