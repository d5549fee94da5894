"""Negotiation lifecycle state machine with transition validation."""

from negotiations.state_machine.machine import NegotiationStateMachine
from negotiations.state_machine.transitions import (
    TERMINAL_STATES,
    TRANSITIONS,
    NegotiationEvent,
    next_status,
)

__all__ = [
    "NegotiationEvent",
    "NegotiationStateMachine",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "next_status",
]
