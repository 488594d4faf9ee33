#!/usr/bin/env python3
"""
Complete Sequencing Demo: Layout → Analysis → Shuffle → Reveal

Shows the full workflow:
1. Load a layout (YAML file given on the command line, or the built-in example)
2. Check that the group distribution admits a valid order
3. Start a sequencer against an in-memory host
4. Answer every unit until the survey's own next control comes back
"""

import logging
import sys
from pathlib import Path

from qrand.analyzer import analyze_registry
from qrand.events import Interaction, InteractionKind
from qrand.examples import build_example_layout
from qrand.host import RecordingHost
from qrand.sequencer import Sequencer, SequencerState
from qrand.serialization import layout_from_yaml, order_to_dict


def main():
    if len(sys.argv) > 1:
        layout = layout_from_yaml(Path(sys.argv[1]).read_text())
    else:
        layout = build_example_layout()

    level = logging.DEBUG if layout.config.debug_logging else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print(f"SEQUENCING DEMO: {layout.name}")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Feasibility
    # =========================================================================
    print("\n1. ANALYZING LAYOUT...")
    report = analyze_registry(layout.registry, layout.config.max_run)
    print(f"   ✓ Units: {report.total_units} ({report.total_questions} questions)")
    print(f"   ✓ Groups: {report.group_counts}")
    print(f"   ✓ Feasible with max_run={report.max_run}: {report.feasible}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 2: Shuffle
    # =========================================================================
    print("\n2. SHUFFLING...")
    host = RecordingHost()
    sequencer = Sequencer(host, config=layout.config, registry=layout.registry)
    order = sequencer.randomize()
    if sequencer.state is SequencerState.HALTED:
        print(f"   ✗ {host.alerts[-1]}")
        return 1
    for entry in order_to_dict(order):
        print(f"   {entry['id']:<12} {entry['group']}")

    # =========================================================================
    # STEP 3: Respond
    # =========================================================================
    print("\n3. RESPONDING...")
    sequencer.start()
    while sequencer.state is SequencerState.ACTIVE:
        unit = sequencer.current_unit
        print(f"   showing {unit.id}: {host.visible}")
        for question in unit.members:
            host.interact(question, Interaction(InteractionKind.SELECTION))
        host.activate(unit.id)

    if sequencer.current_unit is not None:
        print(f"   showing {sequencer.current_unit.id}: {host.visible}")
    print(f"   ✓ State: {sequencer.state.value}")
    print(f"   ✓ Host next control restored: {host.next_control_shown}")

    print("\n" + "=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
