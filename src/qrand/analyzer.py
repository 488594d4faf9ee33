"""
Feasibility Analyzer: early diagnostics for a unit registry.

This module answers "can these units be ordered at all with this max_run?"
before the shuffle burns through its restart budget:
    - Group size inventory
    - Largest group vs. the rest
    - Warning flags for configurations likely to surprise respondents

A group of size L among N units can be spread out only if every run of at
most max_run units from that group is separated by at least one other unit:

    L <= max_run * (N - L + 1)

The condition is exact: when it holds a valid order exists (the shuffle may
still give up, see qrand.shuffle).

IMPORTANT: This is read-only. It does NOT modify the registry.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from qrand.model import AdvancePolicy, Registry


@dataclass
class FeasibilityReport:
    """Analysis report for a registry and a max_run."""

    max_run: int
    total_units: int = 0
    total_questions: int = 0
    group_counts: Dict[str, int] = field(default_factory=dict)
    largest_group: Optional[str] = None
    largest_count: int = 0
    # Most units the largest group may have with the others as separators
    capacity: int = 0
    feasible: bool = True
    multi_member_units: List[str] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_registry(registry: Registry, max_run: int) -> FeasibilityReport:
    """
    Check whether a registry's group distribution admits a valid order.

    Returns a FeasibilityReport with counts and warnings.
    """
    report = FeasibilityReport(max_run=max_run)
    units = registry.units

    report.total_units = len(units)
    report.total_questions = sum(len(u.members) for u in units)
    counts = Counter(u.group for u in units)
    # Keep first-seen order for stable reports
    report.group_counts = {g: counts[g] for g in registry.groups()}

    if not units:
        report.add_warning("Registry is empty: nothing to sequence")
        return report

    largest_group, largest_count = counts.most_common(1)[0]
    report.largest_group = largest_group
    report.largest_count = largest_count

    others = report.total_units - largest_count
    report.capacity = max_run * (others + 1)
    report.feasible = largest_count <= report.capacity

    if not report.feasible:
        report.add_warning(
            f"No valid order: group {largest_group!r} has {largest_count} units "
            f"but at most {report.capacity} fit with max_run={max_run}"
        )

    if len(counts) == 1 and largest_count > max_run:
        report.add_warning(
            f"Single group {largest_group!r} with {largest_count} units exceeds max_run={max_run}"
        )

    for unit in units:
        if len(unit.members) > 1:
            report.multi_member_units.append(unit.id)
            if unit.advance_policy is AdvancePolicy.IMPLICIT:
                report.add_warning(
                    f"Unit {unit.id!r} has {len(unit.members)} questions but advances on first interaction"
                )

    return report
