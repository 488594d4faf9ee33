"""
Core Sequencing Model Objects

Defines the fundamental data structures of the question randomizer.

These are plain data classes representing:
    - Questions (opaque host handles)
    - Units (what actually gets ordered and revealed)
    - The registry (arena of units, addressed by typed handles)
    - Per-session answer progress for a unit

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about the host survey engine
        - Are immutable after setup (UnitProgress belongs to one session)
        - Represent structure, not presentation
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set

logger = logging.getLogger(__name__)


class DuplicateUnitError(ValueError):
    """Raised when a unit id is registered twice."""
    pass


class AdvancePolicy(Enum):
    """
    When a unit allows the respondent to move on.

    EXPLICIT:
        A per-unit advance control is shown and must be activated.
        Multi-question units require every question answered first.
    IMPLICIT:
        The first answered interaction moves to the next unit.
    """

    EXPLICIT = "explicit"
    IMPLICIT = "implicit"


@dataclass(frozen=True)
class QuestionRef:
    """
    Opaque handle to a host question.

    The core never interprets it beyond identity.
    """

    question_id: str


@dataclass(frozen=True)
class UnitHandle:
    """Typed index into a Registry."""

    index: int


@dataclass
class Unit:
    """
    A presentable item in the sequence.

    A unit is either a single question or a fixed bundle of questions shown
    together. Units are the objects that get shuffled.

    Properties:
        id:
            Unique identifier within a registry
            Examples: "q1", "demographics"

        group:
            Label used only to limit consecutive repetition while shuffling

        members:
            Ordered questions in this unit (at least one once registered)

        advance_policy:
            EXPLICIT or IMPLICIT, see AdvancePolicy

        handle:
            Assigned by the registry on registration
    """

    id: str
    group: str
    members: List[QuestionRef] = field(default_factory=list)
    advance_policy: AdvancePolicy = AdvancePolicy.EXPLICIT
    handle: Optional[UnitHandle] = None

    @property
    def last_member(self) -> QuestionRef:
        """The last question; the host's terminal next control lives here."""
        return self.members[-1]

    @property
    def requires_all_members(self) -> bool:
        return self.advance_policy is AdvancePolicy.EXPLICIT and len(self.members) > 1


@dataclass
class UnitProgress:
    """
    One session's answers for one unit.

    Units describe the layout and are shared by every session run over it;
    everything the respondent changes lives here instead.

    Properties:
        unit:
            The unit being answered

        completed_members:
            Indexes of members the respondent has answered

        advanced:
            Set once the sequencer has moved past this unit; a second
            advance trigger from the same unit is ignored
    """

    unit: Unit
    completed_members: Set[int] = field(default_factory=set)
    advanced: bool = False

    def mark_answered(self, member: int) -> bool:
        """
        Record that a member has been answered.

        Returns:
            True if the index is valid for this unit, False otherwise
        """
        if not 0 <= member < len(self.unit.members):
            return False
        self.completed_members.add(member)
        return True

    def can_progress(self) -> bool:
        if self.unit.requires_all_members:
            return len(self.completed_members) == len(self.unit.members)
        return bool(self.completed_members)


class Registry:
    """
    Ordered arena of units.

    Units are appended during setup and addressed by UnitHandle afterwards.
    Insertion order is preserved; it is the pool order the shuffle draws from.

    INVARIANTS:
        - Unit ids are unique
        - unit.handle.index is the unit's position in the registry
        - After lock(), the registry never changes
    """

    def __init__(self) -> None:
        self._units: List[Unit] = []
        self._by_id: Dict[str, UnitHandle] = {}
        self.locked = False

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[Unit]:
        return iter(self._units)

    @property
    def units(self) -> List[Unit]:
        return list(self._units)

    def lock(self) -> None:
        self.locked = True

    def register(self, unit: Unit) -> Optional[UnitHandle]:
        """
        Append a fully built unit.

        Args:
            unit: Unit to add; its handle is assigned here

        Returns:
            The new handle, or None if the registry is locked

        Raises:
            DuplicateUnitError: If a unit with the same id already exists
        """
        if self.locked:
            logger.debug("Registry locked, ignoring unit %s", unit.id)
            return None
        if unit.id in self._by_id:
            raise DuplicateUnitError(f"Duplicate unit id: {unit.id}")

        handle = UnitHandle(len(self._units))
        unit.handle = handle
        self._units.append(unit)
        self._by_id[unit.id] = handle
        return handle

    def add_question(
        self,
        question: QuestionRef,
        group: str,
        block: Optional[str] = None,
        advance_policy: AdvancePolicy = AdvancePolicy.EXPLICIT,
    ) -> Optional[UnitHandle]:
        """
        Add one question, creating its unit or joining an existing one.

        Args:
            question: Host question handle
            group: Group label for the unit
            block: Optional unit id shared by questions shown together.
                If omitted, a unique id is generated.
            advance_policy: Policy for a newly created unit

        Returns:
            Handle of the unit holding the question, or None if locked

        Note: the first question of a block dictates the unit's group and
        policy; later questions only add members.
        """
        if self.locked:
            logger.debug("Registry locked, ignoring question %s", question.question_id)
            return None

        if block is None:
            block = self._generate_unit_id()

        handle = self._by_id.get(block)
        if handle is not None:
            unit = self._units[handle.index]
            if unit.group != group:
                logger.warning(
                    "Question %s declares group %r but unit %s has group %r; keeping %r",
                    question.question_id, group, unit.id, unit.group, unit.group,
                )
            unit.members.append(question)
            return handle

        unit = Unit(id=block, group=group, members=[question], advance_policy=advance_policy)
        return self.register(unit)

    def _generate_unit_id(self) -> str:
        n = len(self._units)
        while f"unit-{n}" in self._by_id:
            n += 1
        return f"unit-{n}"

    def get(self, handle: UnitHandle) -> Unit:
        return self._units[handle.index]

    def find(self, unit_id: str) -> Optional[Unit]:
        """
        Retrieve a unit by id.

        Args:
            unit_id: Unit identifier

        Returns:
            Unit object or None if not found
        """
        handle = self._by_id.get(unit_id)
        if handle is None:
            return None
        return self._units[handle.index]

    def groups(self) -> List[str]:
        """Distinct group labels in first-seen order."""
        seen: List[str] = []
        for unit in self._units:
            if unit.group not in seen:
                seen.append(unit.group)
        return seen
