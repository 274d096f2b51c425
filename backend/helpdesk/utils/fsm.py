from __future__ import annotations
"""Finite state machine helper for the few transitions that are enforced.

Ticket status is otherwise free-form; only the approval step is guarded:
    APPROVAL_FSM = TransitionValidator({
        'pending_approval': {'open', 'closed'},
    })
    APPROVAL_FSM.assert_can_transition(ticket.status, 'open')

Raises 400 abort if invalid.
"""
from typing import Dict, Set
from flask import abort

class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str, message: str | None = None):
        if not self.can_transition(current, target):
            abort(400, description=message or f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
