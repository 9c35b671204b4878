# failing_up/content.py
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from failing_up.config import BANDMATE_FATES
from failing_up.models import (
    DERIVED_FLAGS,
    Arc,
    ArcStage,
    EventChoice,
    GameEvent,
    Temptation,
    TemptationChoice,
)
from failing_up.stats import is_known_stat
from failing_up.triggers import validate_conditions

logger = logging.getLogger(__name__)

# --- Locate data files (shipped inside the package) ---
#   failing_up/
#     data/events.json, data/arcs.json, data/temptations.json
_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
EVENTS_PATH = os.path.join(_DATA_DIR, "events.json")
ARCS_PATH = os.path.join(_DATA_DIR, "arcs.json")
TEMPTATIONS_PATH = os.path.join(_DATA_DIR, "temptations.json")

_CACHE: Dict[str, List[Any]] = {}

BANDMATE_ATTRS = ("talent", "reliability", "vice", "loyalty")
RIVAL_BEEF_MOVES = ("start", "end")


def _read(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of records")
    return raw


def _check_stats(where: str, deltas: Dict[str, int]) -> Dict[str, int]:
    unknown = [k for k in deltas if not is_known_stat(k)]
    if unknown:
        raise ValueError(f"{where}: unknown stat(s) {', '.join(sorted(unknown))}")
    return {k: int(v) for k, v in deltas.items()}


def _conditions(where: str, raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    conditions = dict(raw or {})
    try:
        validate_conditions(conditions)
    except ValueError as e:
        raise ValueError(f"{where}: {e}") from e
    return conditions


# =============================================================================
# Parsing
# =============================================================================

def parse_event(raw: Dict[str, Any]) -> GameEvent:
    eid = raw["id"]
    choices = []
    for c in raw.get("choices", []):
        where = f"event {eid} choice {c['id']}"
        bandmate_changes = {k: int(v) for k, v in c.get("bandmate_changes", {}).items()}
        bad = [k for k in bandmate_changes if k not in BANDMATE_ATTRS]
        if bad:
            raise ValueError(f"{where}: unknown bandmate attribute(s) {', '.join(bad)}")
        flags_set = list(c.get("flags_set", []))
        flags_clear = list(c.get("flags_clear", []))
        derived = [f for f in flags_set + flags_clear if f in DERIVED_FLAGS]
        if derived:
            raise ValueError(f"{where}: cannot set derived flag(s) {', '.join(derived)}")
        fate = c.get("bandmate_fate")
        if fate is not None and fate not in BANDMATE_FATES:
            raise ValueError(f"{where}: unknown bandmate fate {fate!r}")
        beef = c.get("rival_beef")
        if beef is not None and beef not in RIVAL_BEEF_MOVES:
            raise ValueError(f"{where}: rival_beef must be one of {', '.join(RIVAL_BEEF_MOVES)}")
        choices.append(
            EventChoice(
                id=c["id"],
                label=c["label"],
                outcome_text=c.get("outcome_text", ""),
                stat_changes=_check_stats(where, c.get("stat_changes", {})),
                bandmate_changes=bandmate_changes,
                flags_set=flags_set,
                flags_clear=flags_clear,
                arc_progression=c.get("arc_progression"),
                bandmate_fate=fate,
                rival_beef=beef,
                hire_manager=bool(c.get("hire_manager", False)),
            )
        )
    if not choices:
        raise ValueError(f"event {eid}: needs at least one choice")
    return GameEvent(
        id=eid,
        text_intro=raw.get("text_intro", ""),
        choices=choices,
        conditions=_conditions(f"event {eid}", raw.get("conditions")),
        weight=float(raw.get("weight", 1.0)),
        one_time=bool(raw.get("one_time", False)),
        required_action=raw.get("required_action"),
        negative=bool(raw.get("negative", False)),
    )


def parse_arc(raw: Dict[str, Any]) -> Arc:
    aid = raw["id"]
    stages = []
    for s in raw.get("stages", []):
        advance = s.get("advance_conditions")
        stages.append(
            ArcStage(
                stage_id=int(s["stage_id"]),
                event_ids=list(s.get("event_ids", [])),
                advance_conditions=(
                    _conditions(f"arc {aid} stage {s['stage_id']}", advance)
                    if advance is not None
                    else None
                ),
            )
        )
    if not stages:
        raise ValueError(f"arc {aid}: needs at least one stage")
    return Arc(
        id=aid,
        name=raw.get("name", aid),
        stages=stages,
        entry_conditions=_conditions(f"arc {aid}", raw.get("entry_conditions")),
    )


def _parse_temptation_choice(where: str, raw: Dict[str, Any]) -> TemptationChoice:
    return TemptationChoice(
        id=raw["id"],
        label=raw["label"],
        result_text=raw.get("result_text", ""),
        effects=_check_stats(where, raw.get("effects", {})),
    )


def parse_temptation(raw: Dict[str, Any]) -> Temptation:
    tid = raw["id"]
    chance = float(raw["base_chance"])
    if not 0.0 <= chance <= 1.0:
        raise ValueError(f"temptation {tid}: base_chance must be in 0..1")
    return Temptation(
        id=tid,
        source=raw.get("source", "self"),
        prompt=raw.get("prompt", ""),
        offer=raw.get("offer", ""),
        base_chance=chance,
        accept=_parse_temptation_choice(f"temptation {tid} accept", raw["accept"]),
        decline=_parse_temptation_choice(f"temptation {tid} decline", raw["decline"]),
        conditions=_conditions(f"temptation {tid}", raw.get("conditions")),
        cooldown=int(raw.get("cooldown", 4)),
    )


def check_arc_references(arcs: Sequence[Arc], events: Sequence[GameEvent]) -> None:
    """Every event id an arc stage points at must exist in the event catalog."""
    known = {e.id for e in events}
    for arc in arcs:
        for stage in arc.stages:
            missing = [eid for eid in stage.event_ids if eid not in known]
            if missing:
                raise ValueError(f"arc {arc.id} stage {stage.stage_id}: unknown event(s) {', '.join(missing)}")


# =============================================================================
# Loading (cached per path)
# =============================================================================

def _load(path: str, parse) -> List[Any]:
    if path not in _CACHE:
        records = [parse(r) for r in _read(path)]
        ids = [r.id for r in records]
        if len(set(ids)) != len(ids):
            raise ValueError(f"{path}: duplicate ids")
        _CACHE[path] = records
        logger.debug("loaded %d records from %s", len(records), path)
    return _CACHE[path]


def load_events(path: Optional[str] = None) -> List[GameEvent]:
    return _load(path or EVENTS_PATH, parse_event)


def load_arcs(path: Optional[str] = None) -> List[Arc]:
    return _load(path or ARCS_PATH, parse_arc)


def load_temptations(path: Optional[str] = None) -> List[Temptation]:
    return _load(path or TEMPTATIONS_PATH, parse_temptation)


def clear_cache() -> None:
    _CACHE.clear()
