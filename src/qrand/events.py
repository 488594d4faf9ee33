"""
Inbound messages for the sequencer.

Host callbacks never mutate sequencer state directly. They build one of
these messages and hand it to ``Sequencer.dispatch``, which is the only
transition function.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from qrand.model import UnitHandle


class InteractionKind(Enum):
    SELECTION = "selection"  # radio button, checkbox, ...
    TEXT = "text"            # free-text entry


@dataclass(frozen=True)
class Interaction:
    """What the host reports when a respondent touches a question."""

    kind: InteractionKind
    value: str = ""

    def counts_as_answer(self) -> bool:
        if self.kind is InteractionKind.SELECTION:
            return True
        return self.value != ""


@dataclass(frozen=True)
class MemberInteraction:
    unit: UnitHandle
    member: int
    interaction: Interaction


@dataclass(frozen=True)
class MemberAnswered:
    unit: UnitHandle
    member: int


@dataclass(frozen=True)
class AdvanceRequested:
    unit: UnitHandle


Message = Union[MemberInteraction, MemberAnswered, AdvanceRequested]
