"""
Example layouts for demos and tests.

build_example_layout() models a small attitude survey: three topics with
two single-question units each, plus one two-question block that must be
fully answered before moving on.
"""
from qrand.config import SequencerConfig
from qrand.model import AdvancePolicy, QuestionRef, Registry, Unit
from qrand.serialization import Layout


def build_example_layout(max_run: int = 2, seed: int = 2204) -> Layout:
    config = SequencerConfig(max_run=max_run, seed=seed)
    registry = Registry()

    topics = ["work", "health", "housing"]
    for topic in topics:
        for i in range(1, 3):
            registry.register(
                Unit(
                    id=f"{topic}{i}",
                    group=topic,
                    members=[QuestionRef(f"QID_{topic}_{i}")],
                    advance_policy=AdvancePolicy.IMPLICIT,
                )
            )

    # Block shown as one unit: both questions answered, then the button
    registry.register(
        Unit(
            id="commute",
            group="work",
            members=[QuestionRef("QID_commute_mode"), QuestionRef("QID_commute_minutes")],
            advance_policy=AdvancePolicy.EXPLICIT,
        )
    )

    return Layout(name="Example Attitude Survey", config=config, registry=registry)
