"""Deterministic Cisco-style CLI simulation engine.

This package is intentionally stdlib-only and designed for unit testing.
The single entry point is ``process(state, line)``.
"""

from .cli import CLIEngine, CLIResult, process
from .session import LabSession
from .serialization import state_from_dict, state_to_dict
from .state import DeviceState, get_initial_state

__all__ = [
    "CLIEngine",
    "CLIResult",
    "DeviceState",
    "LabSession",
    "get_initial_state",
    "process",
    "state_from_dict",
    "state_to_dict",
]
