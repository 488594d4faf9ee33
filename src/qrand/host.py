"""
Host Adapter: the boundary to the survey engine.

The sequencer decides WHAT is visible; the host decides HOW. Everything the
core needs from the outside world goes through HostAdapter:
    - Showing and hiding units
    - Suppressing and restoring the engine's own "next" control
    - Delivering question interactions
    - Optional per-unit advance controls
    - Fatal alerts

RecordingHost is a complete in-memory adapter. It backs the tests and the
demo, and is a reasonable starting point for headless runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Set

from qrand.events import Interaction
from qrand.model import QuestionRef, Unit

logger = logging.getLogger(__name__)

InteractionHandler = Callable[[Interaction], None]
ActivateHandler = Callable[[], None]


class AdvanceControl(ABC):
    """A per-unit "next question" control (for example a button)."""

    @abstractmethod
    def on_activate(self, handler: ActivateHandler) -> None: ...

    @abstractmethod
    def enable(self) -> None: ...

    @abstractmethod
    def disable(self) -> None: ...

    @abstractmethod
    def show(self) -> None: ...

    @abstractmethod
    def hide(self) -> None: ...


class HostAdapter(ABC):
    """Capabilities the sequencer consumes from the host survey engine."""

    @abstractmethod
    def hide_next_control(self, question: QuestionRef) -> None:
        """Suppress the engine's own navigation control for a question."""

    @abstractmethod
    def show_next_control(self, question: QuestionRef) -> None:
        """Restore the engine's navigation control; used on the final unit."""

    @abstractmethod
    def reveal_unit(self, unit: Unit) -> None: ...

    @abstractmethod
    def hide_unit(self, unit: Unit) -> None: ...

    @abstractmethod
    def on_member_interaction(self, question: QuestionRef, handler: InteractionHandler) -> None:
        """Call ``handler`` whenever the respondent interacts with ``question``."""

    @abstractmethod
    def create_advance_control(self, unit: Unit) -> AdvanceControl: ...

    @abstractmethod
    def alert(self, message: str) -> None:
        """Show a fatal, user-visible error."""


class RecordingControl(AdvanceControl):
    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        self.enabled = False
        self.visible = False
        self.handlers: List[ActivateHandler] = []

    def on_activate(self, handler: ActivateHandler) -> None:
        self.handlers.append(handler)

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def activate(self) -> bool:
        """Simulate a click. Disabled or hidden controls ignore it."""
        if not (self.enabled and self.visible):
            return False
        for handler in list(self.handlers):
            handler()
        return True


class RecordingHost(HostAdapter):
    """In-memory host that records every visible effect."""

    def __init__(self) -> None:
        self.visible: List[str] = []
        self.revealed: List[str] = []
        self.hidden_next: Set[QuestionRef] = set()
        self.shown_next: List[QuestionRef] = []
        self.controls: Dict[str, RecordingControl] = {}
        self.alerts: List[str] = []
        self._handlers: Dict[QuestionRef, List[InteractionHandler]] = {}

    def hide_next_control(self, question: QuestionRef) -> None:
        self.hidden_next.add(question)

    def show_next_control(self, question: QuestionRef) -> None:
        self.hidden_next.discard(question)
        self.shown_next.append(question)

    def reveal_unit(self, unit: Unit) -> None:
        if unit.id not in self.visible:
            self.visible.append(unit.id)
        self.revealed.append(unit.id)

    def hide_unit(self, unit: Unit) -> None:
        if unit.id in self.visible:
            self.visible.remove(unit.id)

    def on_member_interaction(self, question: QuestionRef, handler: InteractionHandler) -> None:
        self._handlers.setdefault(question, []).append(handler)

    def create_advance_control(self, unit: Unit) -> RecordingControl:
        control = RecordingControl(unit.id)
        self.controls[unit.id] = control
        return control

    def alert(self, message: str) -> None:
        logger.error("Alert: %s", message)
        self.alerts.append(message)

    # -- simulation helpers ----------------------------------------------

    def interact(self, question: QuestionRef, interaction: Interaction) -> None:
        for handler in list(self._handlers.get(question, [])):
            handler(interaction)

    def activate(self, unit_id: str) -> bool:
        control: Optional[RecordingControl] = self.controls.get(unit_id)
        if control is None:
            return False
        return control.activate()

    @property
    def next_control_shown(self) -> bool:
        return bool(self.shown_next)
