"""
Serialization helpers for survey layouts.

A layout is the setup-time description of a session: configuration plus the
units to register. It round-trips through an intermediate dict, so JSON and
YAML share one structure:

    name: Example
    config:
      max_run: 2
    units:
      - id: q1
        group: A
        advance_policy: implicit
        members: [QID1]

Only setup is serialized. Session progress (cursor, answers) never is.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import yaml

from qrand.config import SequencerConfig, config_from_dict, config_to_dict
from qrand.model import AdvancePolicy, QuestionRef, Registry, Unit


class LayoutError(ValueError):
    """Raised when a serialized layout is malformed."""
    pass


@dataclass
class Layout:
    name: str
    config: SequencerConfig = field(default_factory=SequencerConfig)
    registry: Registry = field(default_factory=Registry)


def unit_to_dict(u: Unit) -> Dict[str, Any]:
    return {
        "id": u.id,
        "group": u.group,
        "advance_policy": u.advance_policy.value,
        "members": [q.question_id for q in u.members],
    }


def unit_from_dict(d: Dict[str, Any], default_policy: AdvancePolicy) -> Unit:
    try:
        unit_id = str(d["id"])
        group = str(d["group"])
    except (KeyError, TypeError) as e:
        raise LayoutError(f"Unit is missing a required field: {e}")

    members = [QuestionRef(str(m)) for m in d.get("members") or []]
    if not members:
        raise LayoutError(f"Unit {unit_id!r} has no members")

    raw_policy = d.get("advance_policy")
    try:
        policy = AdvancePolicy(raw_policy) if raw_policy is not None else default_policy
    except ValueError:
        raise LayoutError(f"Unit {unit_id!r} has unknown advance_policy {raw_policy!r}")

    return Unit(id=unit_id, group=group, members=members, advance_policy=policy)


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    return {
        "name": layout.name,
        "config": config_to_dict(layout.config),
        "units": [unit_to_dict(u) for u in layout.registry],
    }


def layout_from_dict(d: Dict[str, Any]) -> Layout:
    if not isinstance(d, dict):
        raise LayoutError(f"Layout must be a mapping, got {type(d).__name__}")

    config = config_from_dict(d.get("config"))
    registry = Registry()
    for raw in d.get("units") or []:
        unit = unit_from_dict(raw, config.default_policy)
        if registry.find(unit.id) is not None:
            raise LayoutError(f"Duplicate unit id: {unit.id}")
        registry.register(unit)

    return Layout(name=d.get("name", ""), config=config, registry=registry)


def order_to_dict(order: Sequence[Unit]) -> List[Dict[str, Any]]:
    """Compact listing of a chosen order, for logs and reports."""
    return [{"id": u.id, "group": u.group} for u in order]


def layout_to_json(layout: Layout) -> str:
    return json.dumps(layout_to_dict(layout), sort_keys=True)


def layout_from_json(s: str) -> Layout:
    return layout_from_dict(json.loads(s))


def layout_to_yaml(layout: Layout) -> str:
    return yaml.safe_dump(layout_to_dict(layout), sort_keys=False)


def layout_from_yaml(s: str) -> Layout:
    return layout_from_dict(yaml.safe_load(s))
