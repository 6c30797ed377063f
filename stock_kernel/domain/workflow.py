"""
Canonical workflow types (``stock_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for status state machines.  Purchase orders, sales
orders and stock transfers each declare one ``Workflow`` so that Guard,
Transition and Workflow are defined once.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only; the owning service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition.

    ``moves_stock=True`` marks transitions that adjust the inventory ledger.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    moves_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state '{self.initial_state}' "
                f"is not one of {self.states}"
            )
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"Workflow {self.name}: transition {t.action} "
                        f"references unknown state '{state}'"
                    )

    def find(
        self,
        from_state: str,
        action: str,
        to_state: str | None = None,
    ) -> Transition | None:
        """Return the transition for (from_state, action[, to_state]) or None."""
        for t in self.transitions:
            if t.from_state != from_state or t.action != action:
                continue
            if to_state is not None and t.to_state != to_state:
                continue
            return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        """Distinct actions available from ``state``, in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.from_state == state and t.action not in seen:
                seen.append(t.action)
        return tuple(seen)

    def is_terminal(self, state: str) -> bool:
        return not self.actions_from(state)
