"""Pipeline core: selection, session state, stage gating and coordination."""

from .selection import SelectionSet
from .session import SessionSnapshot, SessionState
from . import stage_gate
from .coordinator import PipelineCoordinator

__all__ = [
    'PipelineCoordinator',
    'SelectionSet',
    'SessionSnapshot',
    'SessionState',
    'stage_gate',
]
