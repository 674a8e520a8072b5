"""Runtime state for the RPC Sentinel service."""

from enum import Enum
from typing import Dict


class ServiceState(str, Enum):
    """Lifecycle states for the Sentinel service.

    Valid transitions:
        PENDING  → RUNNING | STOPPED
        RUNNING  → STOPPING
        STOPPING → STOPPED
    """

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


# Valid state transitions: current_state → set of allowed next states
_VALID_TRANSITIONS: Dict[ServiceState, frozenset[ServiceState]] = {
    ServiceState.PENDING: frozenset({ServiceState.RUNNING, ServiceState.STOPPED}),
    ServiceState.RUNNING: frozenset({ServiceState.STOPPING}),
    ServiceState.STOPPING: frozenset({ServiceState.STOPPED}),
    ServiceState.STOPPED: frozenset(),
}


def is_valid_transition(current: ServiceState, target: ServiceState) -> bool:
    """Check whether a state transition is allowed."""
    return target in _VALID_TRANSITIONS.get(current, frozenset())
