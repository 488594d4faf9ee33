"""
Sequencer: reveals shuffled units one at a time.

State machine:

    IDLE ──start()──> ACTIVE ──advance()...──> COMPLETE
      │
      └──shuffle exhausted──> HALTED

Transitions only move forward. The cursor counts units already revealed;
``order[cursor - 1]`` is the unit on screen. Reaching the last unit hands
navigation back to the host's own "next" control.

ARCHITECTURAL RULE:
    Host callbacks only build messages (qrand.events) and pass them to
    dispatch(). All state changes happen inside this class, on one logical
    thread, in arrival order. Out-of-order calls are absorbed as no-ops.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from qrand.config import SequencerConfig
from qrand.events import (
    AdvanceRequested,
    Interaction,
    MemberAnswered,
    MemberInteraction,
    Message,
)
from qrand.host import AdvanceControl, HostAdapter, InteractionHandler
from qrand.model import AdvancePolicy, QuestionRef, Registry, Unit, UnitHandle, UnitProgress
from qrand.randomness import RandomSource, SeededRandomSource
from qrand.shuffle import ShuffleExhaustedError, constrained_shuffle

logger = logging.getLogger(__name__)


class SequencerState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"
    HALTED = "halted"


class Sequencer:
    """
    Owns the registry, the shuffled order and the cursor for one session.

    Args:
        host: Adapter to the survey engine
        config: Options; defaults to SequencerConfig()
        rng: Randomness for the shuffle; seeded from config.seed if omitted
        registry: Pre-populated registry; a new empty one if omitted.
            Its units are hidden on the host straight away. The registry
            may be shared by several sessions: answers are kept per
            sequencer, never on the units.
    """

    def __init__(
        self,
        host: HostAdapter,
        config: Optional[SequencerConfig] = None,
        rng: Optional[RandomSource] = None,
        registry: Optional[Registry] = None,
    ):
        self.host = host
        self.config = config or SequencerConfig()
        self.rng = rng or SeededRandomSource(self.config.seed)
        self.registry = registry if registry is not None else Registry()
        self.order: List[Unit] = []
        self.cursor = 0
        self.state = SequencerState.IDLE
        self._randomized = False
        self._controls: Dict[UnitHandle, AdvanceControl] = {}
        self._progress: Dict[UnitHandle, UnitProgress] = {}

        for unit in self.registry:
            self._suppress(unit)

    # =========================================================================
    # SETUP
    # =========================================================================

    def add_question(
        self,
        question: QuestionRef,
        group: str,
        block: Optional[str] = None,
        use_buttons: Optional[bool] = None,
    ) -> Optional[UnitHandle]:
        """
        Register a question as the host loads it.

        The host's own next control is suppressed and the question hidden
        until its unit comes up.

        Args:
            question: Host question handle
            group: Group label, used only by the shuffle
            block: Optional unit id; questions sharing it are shown together
            use_buttons: Force an advance control on (True) or off (False)
                for a new unit. None uses config.use_buttons_by_default.

        Returns:
            The unit's handle, or None once the registry is locked
        """
        if use_buttons is None:
            policy = self.config.default_policy
        else:
            policy = AdvancePolicy.EXPLICIT if use_buttons else AdvancePolicy.IMPLICIT

        handle = self.registry.add_question(question, group, block=block, advance_policy=policy)
        if handle is None:
            return None

        self.host.hide_next_control(question)
        self.host.hide_unit(self.registry.get(handle))
        return handle

    def register(self, unit: Unit) -> Optional[UnitHandle]:
        """
        Register a fully built unit.

        Raises:
            DuplicateUnitError: If the unit id is already registered
        """
        handle = self.registry.register(unit)
        if handle is None:
            return None

        self._suppress(unit)
        return handle

    # =========================================================================
    # ORDERING
    # =========================================================================

    def randomize(self) -> List[Unit]:
        """
        Compute (or recompute) the order. Only allowed while IDLE.

        Locks the registry. If the shuffle cannot satisfy max_run, the host
        is alerted and the sequencer halts.

        Returns:
            A copy of the order; empty after a failure
        """
        if self.state is not SequencerState.IDLE:
            logger.debug("randomize() ignored in state %s", self.state.value)
            return list(self.order)

        self.registry.lock()

        try:
            order = constrained_shuffle(
                self.registry.units,
                max_run=self.config.max_run,
                rng=self.rng,
                max_restarts=self.config.max_restarts,
                reject_streak_factor=self.config.reject_streak_factor,
                debug=self.config.debug_logging,
            )
        except ShuffleExhaustedError as e:
            logger.error("Shuffle failed: %s", e)
            self.host.alert(str(e))
            self.order = []
            self.state = SequencerState.HALTED
            return []

        self.order = order
        self._randomized = True
        return list(order)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    @property
    def current_unit(self) -> Optional[Unit]:
        if self.cursor == 0:
            return None
        return self.order[self.cursor - 1]

    def progress(self, handle: UnitHandle) -> Optional[UnitProgress]:
        """This session's answers for a unit; None before start()."""
        return self._progress.get(handle)

    def start(self) -> Optional[Unit]:
        """
        Shuffle if needed and reveal the first unit.

        Returns:
            The first unit, or None if there is nothing to show
        """
        if self.state is not SequencerState.IDLE:
            logger.debug("start() ignored in state %s", self.state.value)
            return None

        self.registry.lock()
        if not self._randomized:
            self.randomize()
            if self.state is SequencerState.HALTED:
                return None

        self._progress = {unit.handle: UnitProgress(unit) for unit in self.registry}
        self._add_flow_controls()
        return self._step()

    def advance(self) -> Optional[Unit]:
        """
        Move to the next unit if the current one may progress.

        Returns:
            The newly revealed unit, or None if the request was not honored
        """
        if self.state is not SequencerState.ACTIVE:
            logger.debug("advance() ignored in state %s", self.state.value)
            return None

        unit = self.current_unit
        progress = self._progress[unit.handle]
        if progress.advanced or not progress.can_progress():
            logger.debug("advance() ignored, unit %s cannot progress yet", unit.id)
            return None
        return self._step()

    def member_answered(self, handle: UnitHandle, member: int) -> None:
        """Record an answer and enable or trigger progression when allowed."""
        if self.state not in (SequencerState.ACTIVE, SequencerState.COMPLETE):
            return

        progress = self._progress.get(handle)
        if progress is None or not progress.mark_answered(member):
            return
        unit = progress.unit
        if self.state is not SequencerState.ACTIVE or unit is not self.current_unit:
            return
        if not progress.can_progress():
            return

        if unit.advance_policy is AdvancePolicy.EXPLICIT:
            control = self._controls.get(handle)
            if control is not None:
                control.enable()
        else:
            self._request_advance(handle)

    def dispatch(self, message: Message) -> None:
        """Transition function for every inbound host message."""
        if isinstance(message, MemberInteraction):
            if message.interaction.counts_as_answer():
                self.member_answered(message.unit, message.member)
        elif isinstance(message, MemberAnswered):
            self.member_answered(message.unit, message.member)
        elif isinstance(message, AdvanceRequested):
            self._request_advance(message.unit)
        else:
            logger.warning("Ignoring unsupported message: %r", message)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _suppress(self, unit: Unit) -> None:
        for question in unit.members:
            self.host.hide_next_control(question)
        self.host.hide_unit(unit)

    def _request_advance(self, handle: UnitHandle) -> None:
        unit = self.current_unit
        if unit is None or unit.handle != handle:
            logger.debug("Stale advance request for %s ignored", handle)
            return
        self.advance()

    def _interaction_handler(self, handle: UnitHandle, member: int) -> InteractionHandler:
        def handler(interaction: Interaction) -> None:
            self.dispatch(MemberInteraction(handle, member, interaction))
        return handler

    def _add_flow_controls(self) -> None:
        for unit in self.registry:
            for member, question in enumerate(unit.members):
                self.host.on_member_interaction(question, self._interaction_handler(unit.handle, member))

            if unit.advance_policy is AdvancePolicy.EXPLICIT:
                control = self.host.create_advance_control(unit)
                control.disable()
                control.hide()
                control.on_activate(lambda handle=unit.handle: self.dispatch(AdvanceRequested(handle)))
                self._controls[unit.handle] = control

    def _reveal(self, unit: Unit) -> None:
        self.host.reveal_unit(unit)
        control = self._controls.get(unit.handle)
        if control is not None:
            control.show()
            if self._progress[unit.handle].can_progress():
                control.enable()

    def _hide(self, unit: Unit) -> None:
        self.host.hide_unit(unit)
        control = self._controls.get(unit.handle)
        if control is not None:
            control.hide()

    def _step(self) -> Optional[Unit]:
        previous = self.current_unit
        if previous is not None:
            self._progress[previous.handle].advanced = True
            self._hide(previous)

        if self.cursor >= len(self.order):
            self.state = SequencerState.COMPLETE
            return None

        unit = self.order[self.cursor]
        self.cursor += 1
        self._reveal(unit)
        logger.debug("Revealed unit %s (%d of %d)", unit.id, self.cursor, len(self.order))

        if self.cursor == len(self.order):
            self.state = SequencerState.COMPLETE
            self.host.show_next_control(unit.last_member)
            control = self._controls.get(unit.handle)
            if control is not None:
                control.hide()
        else:
            self.state = SequencerState.ACTIVE
        return unit
