# failing_up/serialization.py
"""
GameState <-> plain dict / JSON.

The dict form holds only JSON types, so a save written by to_json and read
back with from_json compares equal to the state that produced it.
"""
from __future__ import annotations

import json
from dataclasses import asdict, fields
from typing import Any, Dict, Optional, Type, TypeVar

from failing_up.errors import InvalidStateError
from failing_up.models import (
    Album,
    AlbumNaming,
    Arc,
    ArcStage,
    Bandmate,
    ChartEntry,
    GameState,
    Gig,
    LabelDeal,
    Manager,
    PendingNaming,
    Player,
    PlayerFlags,
    RecordingSession,
    RivalBand,
    Song,
    SongNaming,
    SupportSlotOffer,
    TourSession,
    Venue,
    WeekLog,
)

T = TypeVar("T")

SAVE_VERSION = 1


def _init_fields(cls: Type[T], data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the keys the dataclass constructor accepts; unknown keys are dropped."""
    names = {f.name for f in fields(cls) if f.init}
    return {k: v for k, v in data.items() if k in names}


def _charts(data: Dict[str, Any]) -> Dict[str, Any]:
    out = _init_fields(Song if "hit_potential" in data else Album, data)
    out["chart_history"] = [ChartEntry(**c) for c in data.get("chart_history", [])]
    return out


def _player(data: Dict[str, Any]) -> Player:
    kwargs = _init_fields(Player, data)
    kwargs["flags"] = PlayerFlags(**_init_fields(PlayerFlags, data.get("flags", {})))
    return Player(**kwargs)


def _arc(data: Dict[str, Any]) -> Arc:
    kwargs = _init_fields(Arc, data)
    kwargs["stages"] = [ArcStage(**_init_fields(ArcStage, s)) for s in data.get("stages", [])]
    return Arc(**kwargs)


def _gig(data: Optional[Dict[str, Any]]) -> Optional[Gig]:
    if data is None:
        return None
    kwargs = _init_fields(Gig, data)
    kwargs["venue"] = Venue(**_init_fields(Venue, data["venue"]))
    return Gig(**kwargs)


def _support_offer(data: Optional[Dict[str, Any]]) -> Optional[SupportSlotOffer]:
    if data is None:
        return None
    kwargs = _init_fields(SupportSlotOffer, data)
    kwargs["venue"] = Venue(**_init_fields(Venue, data["venue"]))
    return SupportSlotOffer(**kwargs)


def _optional(cls: Type[T], data: Optional[Dict[str, Any]]) -> Optional[T]:
    if data is None:
        return None
    return cls(**_init_fields(cls, data))


# =============================================================================
# GameState
# =============================================================================

def state_to_dict(state: GameState) -> Dict[str, Any]:
    out = asdict(state)
    out["save_version"] = SAVE_VERSION
    return out


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """
    Rebuild a GameState. Structural invariants are re-checked by the
    constructor, so a tampered save raises InvalidStateError.
    """
    version = data.get("save_version", SAVE_VERSION)
    if version != SAVE_VERSION:
        raise InvalidStateError(f"unsupported save version {version}")
    try:
        kwargs = _init_fields(GameState, data)
        kwargs["player"] = _player(data["player"])
        kwargs["bandmates"] = [Bandmate(**_init_fields(Bandmate, b)) for b in data.get("bandmates", [])]
        kwargs["songs"] = [Song(**_charts(s)) for s in data.get("songs", [])]
        kwargs["albums"] = [Album(**_charts(a)) for a in data.get("albums", [])]
        kwargs["label_deals"] = [LabelDeal(**_init_fields(LabelDeal, d)) for d in data.get("label_deals", [])]
        kwargs["manager"] = _optional(Manager, data.get("manager"))
        kwargs["rival_bands"] = [RivalBand(**_init_fields(RivalBand, r)) for r in data.get("rival_bands", [])]
        kwargs["active_arcs"] = [_arc(a) for a in data.get("active_arcs", [])]
        kwargs["completed_arc_ids"] = list(data.get("completed_arc_ids", []))
        kwargs["triggered_event_ids"] = list(data.get("triggered_event_ids", []))
        kwargs["story_flags"] = list(data.get("story_flags", []))
        kwargs["temptation_cooldowns"] = {
            str(k): int(v) for k, v in data.get("temptation_cooldowns", {}).items()
        }
        kwargs["recording_session"] = _optional(RecordingSession, data.get("recording_session"))
        kwargs["tour_session"] = _optional(TourSession, data.get("tour_session"))
        kwargs["upcoming_gig"] = _gig(data.get("upcoming_gig"))
        kwargs["pending_support_offer"] = _support_offer(data.get("pending_support_offer"))
        kwargs["week_logs"] = [WeekLog(**_init_fields(WeekLog, w)) for w in data.get("week_logs", [])]
        return GameState(**kwargs)
    except (KeyError, TypeError) as e:
        raise InvalidStateError(f"malformed save: {e}") from e


def to_json(state: GameState) -> str:
    return json.dumps(state_to_dict(state), sort_keys=True)


def from_json(text: str) -> GameState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidStateError(f"save is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidStateError("save must be a JSON object")
    return state_from_dict(data)


# =============================================================================
# Pending naming (tagged by `kind`)
# =============================================================================

def naming_to_dict(naming: PendingNaming) -> Dict[str, Any]:
    return asdict(naming)


def naming_from_dict(data: Dict[str, Any]) -> PendingNaming:
    kind = data.get("kind")
    if kind == "song":
        return SongNaming(song_id=data["song_id"], generated_title=data["generated_title"])
    if kind == "album":
        return AlbumNaming(
            album_id=data["album_id"],
            song_ids=list(data.get("song_ids", [])),
            generated_title=data["generated_title"],
        )
    raise InvalidStateError(f"unknown naming kind: {kind!r}")
