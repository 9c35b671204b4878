# failing_up/webapp.py
from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from failing_up.actions import ACTIONS, apply_naming, get_available_actions
from failing_up.band import (
    bandmate_returns_from_rehab,
    bandmate_to_rehab,
    fire_bandmate,
    generate_audition_candidates,
    hire_bandmate,
    missing_roles,
)
from failing_up.config import BANDMATE_ROLES, MANAGER_CANDIDATES
from failing_up.economy import drop_label_deal, sign_label_deal
from failing_up.endings import get_ending_result
from failing_up.errors import (
    EngineError,
    InvalidChoiceError,
    InvalidStateError,
    UnknownActionError,
)
from failing_up.events import apply_choice
from failing_up.gigs import accept_support_offer, decline_support_offer
from failing_up.manager import fire_manager, generate_manager_candidates, hire_manager
from failing_up.models import (
    Bandmate,
    GameEvent,
    GameState,
    LabelDeal,
    Manager,
    PendingNaming,
    Temptation,
)
from failing_up.rivals import active_rivals
from failing_up.rng import turn_rng
from failing_up.serialization import from_json, naming_to_dict, state_to_dict, to_json
from failing_up.sessions import abandon_session, start_recording_session, start_tour_session
from failing_up.state import create_game_state
from failing_up.temptations import apply_temptation_choice
from failing_up.turn import resolve_turn

logger = logging.getLogger(__name__)

app = FastAPI(title="Failing Up")

AUDITION_CANDIDATES = 3


@dataclass
class GameSession:
    """A running game plus whatever the player still has to answer."""
    state: GameState
    pending_event: Optional[GameEvent] = None
    pending_temptation: Optional[Temptation] = None
    pending_naming: Optional[PendingNaming] = None
    label_offer: Optional[LabelDeal] = None
    candidates: List[Bandmate] = field(default_factory=list)
    manager_candidates: List[Manager] = field(default_factory=list)

    def blockers(self) -> List[str]:
        out = []
        if self.pending_event is not None:
            out.append("event")
        if self.pending_temptation is not None:
            out.append("temptation")
        if self.pending_naming is not None:
            out.append("naming")
        return out


# In-memory sessions. Saves go through /save and /load.
SESSIONS: Dict[str, GameSession] = {}


# =============================================================================
# Request bodies
# =============================================================================

class NewGameRequest(BaseModel):
    player_name: str
    band_name: Optional[str] = None
    talent_level: Optional[str] = None
    preferred_style: str = "punk"
    difficulty: str = "normal"
    seed: Optional[int] = None


class TurnRequest(BaseModel):
    action_id: str
    target: Optional[str] = None


class ChoiceRequest(BaseModel):
    choice_id: str


class NamingRequest(BaseModel):
    title: Optional[str] = None


class RecordingRequest(BaseModel):
    song_ids: List[str] = []
    studio: str = "budget"
    weeks: Optional[int] = None
    write_new_songs: bool = False


class TourRequest(BaseModel):
    tour_type: str
    weeks: Optional[int] = None


class LoadRequest(BaseModel):
    save: str


# =============================================================================
# Helpers
# =============================================================================

@app.exception_handler(EngineError)
def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    bad_input = isinstance(exc, (UnknownActionError, InvalidChoiceError, InvalidStateError))
    status = 400 if bad_input else 409
    logger.warning("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})


def _session(sid: str) -> GameSession:
    session = SESSIONS.get(sid)
    if session is None:
        raise HTTPException(status_code=404, detail=f"no game {sid}")
    return session


def _require_clear(session: GameSession) -> None:
    blockers = session.blockers()
    if blockers:
        raise HTTPException(status_code=409, detail=f"resolve pending {', '.join(blockers)} first")


def _view(sid: str, session: GameSession) -> Dict[str, Any]:
    return {
        "sid": sid,
        "state": state_to_dict(session.state),
        "fans": session.state.player.fans,
        "available_actions": get_available_actions(session.state),
        "missing_roles": missing_roles(session.state),
        "pending_event": asdict(session.pending_event) if session.pending_event else None,
        "pending_temptation": asdict(session.pending_temptation) if session.pending_temptation else None,
        "pending_naming": naming_to_dict(session.pending_naming) if session.pending_naming else None,
        "label_offer": asdict(session.label_offer) if session.label_offer else None,
        "rivals": [asdict(r) for r in active_rivals(session.state)],
    }


# =============================================================================
# Routes
# =============================================================================

@app.post("/games")
def new_game(req: NewGameRequest):
    try:
        state = create_game_state(
            req.player_name,
            band_name=req.band_name,
            talent_level=req.talent_level,
            preferred_style=req.preferred_style,
            seed=req.seed,
            difficulty=req.difficulty,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    sid = str(uuid.uuid4())
    SESSIONS[sid] = GameSession(state=state)
    logger.info("new game %s (seed %d, %s)", sid, state.seed, state.difficulty)
    return _view(sid, SESSIONS[sid])


@app.get("/games/{sid}")
def game_view(sid: str):
    return _view(sid, _session(sid))


@app.get("/games/{sid}/actions")
def list_actions(sid: str):
    state = _session(sid).state
    return [
        {"id": aid, "label": ACTIONS[aid].label, "description": ACTIONS[aid].description}
        for aid in get_available_actions(state)
    ]


@app.post("/games/{sid}/turn")
def take_turn(sid: str, req: TurnRequest):
    session = _session(sid)
    _require_clear(session)

    result = resolve_turn(session.state, req.action_id, target=req.target)
    session.state = result.new_state
    session.pending_event = result.triggered_event
    session.pending_temptation = result.triggered_temptation
    session.pending_naming = result.pending_naming
    if result.label_offer is not None:
        session.label_offer = result.label_offer

    view = _view(sid, session)
    view["result_text"] = result.result_text
    view["gig_result"] = asdict(result.gig_result) if result.gig_result else None
    view["diagnostics"] = result.diagnostics
    return view


@app.post("/games/{sid}/event")
def choose_event(sid: str, req: ChoiceRequest):
    session = _session(sid)
    if session.pending_event is None:
        raise HTTPException(status_code=409, detail="no pending event")
    session.state = apply_choice(session.state, session.pending_event, req.choice_id)
    session.pending_event = None
    return _view(sid, session)


@app.post("/games/{sid}/temptation")
def choose_temptation(sid: str, req: ChoiceRequest):
    session = _session(sid)
    if session.pending_temptation is None:
        raise HTTPException(status_code=409, detail="no pending temptation")
    session.state = apply_temptation_choice(session.state, session.pending_temptation, req.choice_id)
    session.pending_temptation = None
    return _view(sid, session)


@app.post("/games/{sid}/naming")
def name_item(sid: str, req: NamingRequest):
    session = _session(sid)
    if session.pending_naming is None:
        raise HTTPException(status_code=409, detail="nothing to name")
    session.state = apply_naming(session.state, session.pending_naming, req.title)
    session.pending_naming = None
    return _view(sid, session)


@app.post("/games/{sid}/recording")
def book_recording(sid: str, req: RecordingRequest):
    session = _session(sid)
    _require_clear(session)
    session.state = start_recording_session(
        session.state,
        song_ids=req.song_ids,
        studio=req.studio,
        weeks=req.weeks,
        write_new_songs=req.write_new_songs,
    )
    return _view(sid, session)


@app.post("/games/{sid}/tour")
def book_tour(sid: str, req: TourRequest):
    session = _session(sid)
    _require_clear(session)
    session.state = start_tour_session(session.state, req.tour_type, weeks=req.weeks)
    return _view(sid, session)


@app.post("/games/{sid}/sessions/{kind}/abandon")
def abandon(sid: str, kind: str):
    session = _session(sid)
    session.state = abandon_session(session.state, kind)
    return _view(sid, session)


@app.post("/games/{sid}/deal/sign")
def sign_deal(sid: str):
    session = _session(sid)
    if session.label_offer is None:
        raise HTTPException(status_code=409, detail="no label offer on the table")
    session.state = sign_label_deal(session.state, session.label_offer)
    session.label_offer = None
    return _view(sid, session)


@app.post("/games/{sid}/deal/decline")
def decline_deal(sid: str):
    session = _session(sid)
    session.label_offer = None
    return _view(sid, session)


@app.post("/games/{sid}/deal/drop")
def drop_deal(sid: str):
    session = _session(sid)
    session.state = drop_label_deal(session.state)
    return _view(sid, session)


@app.post("/games/{sid}/support/accept")
def accept_support(sid: str):
    session = _session(sid)
    session.state = accept_support_offer(session.state)
    return _view(sid, session)


@app.post("/games/{sid}/support/decline")
def decline_support(sid: str):
    session = _session(sid)
    session.state = decline_support_offer(session.state)
    return _view(sid, session)


@app.post("/games/{sid}/bandmates/{bandmate_id}/fire")
def fire(sid: str, bandmate_id: str):
    session = _session(sid)
    session.state = fire_bandmate(session.state, bandmate_id)
    return _view(sid, session)


@app.post("/games/{sid}/bandmates/{bandmate_id}/rehab")
def send_to_rehab(sid: str, bandmate_id: str):
    session = _session(sid)
    session.state = bandmate_to_rehab(session.state, bandmate_id)
    return _view(sid, session)


@app.post("/games/{sid}/bandmates/{bandmate_id}/return")
def back_from_rehab(sid: str, bandmate_id: str):
    session = _session(sid)
    session.state = bandmate_returns_from_rehab(session.state, bandmate_id)
    return _view(sid, session)


@app.post("/games/{sid}/auditions/{role}")
def auditions(sid: str, role: str):
    session = _session(sid)
    if role not in BANDMATE_ROLES:
        raise HTTPException(status_code=400, detail=f"unknown role {role}")
    state = session.state
    # candidates come from this week's stream, so the same week shows the same people
    rng = turn_rng(state.seed, state.week)
    session.candidates = generate_audition_candidates(state, role, AUDITION_CANDIDATES, rng)
    return [asdict(c) for c in session.candidates]


@app.post("/games/{sid}/hire/{candidate_id}")
def hire(sid: str, candidate_id: str):
    session = _session(sid)
    candidate = next((c for c in session.candidates if c.id == candidate_id), None)
    if candidate is None:
        raise HTTPException(status_code=404, detail=f"no candidate {candidate_id}")
    session.state = hire_bandmate(session.state, candidate)
    session.candidates = []
    return _view(sid, session)


@app.post("/games/{sid}/managers")
def manager_interviews(sid: str):
    session = _session(sid)
    state = session.state
    rng = turn_rng(state.seed, state.week)
    session.manager_candidates = generate_manager_candidates(state, MANAGER_CANDIDATES, rng)
    return [asdict(m) for m in session.manager_candidates]


@app.post("/games/{sid}/managers/{manager_id}/hire")
def hire_a_manager(sid: str, manager_id: str):
    session = _session(sid)
    candidate = next((m for m in session.manager_candidates if m.id == manager_id), None)
    if candidate is None:
        raise HTTPException(status_code=404, detail=f"no manager candidate {manager_id}")
    session.state = hire_manager(session.state, candidate)
    session.manager_candidates = []
    return _view(sid, session)


@app.post("/games/{sid}/manager/fire")
def fire_the_manager(sid: str):
    session = _session(sid)
    session.state = fire_manager(session.state)
    return _view(sid, session)


@app.get("/games/{sid}/ending")
def ending(sid: str):
    state = _session(sid).state
    if not state.is_game_over:
        raise HTTPException(status_code=409, detail="the story isn't over yet")
    return asdict(get_ending_result(state))


@app.get("/games/{sid}/save")
def save(sid: str):
    return {"save": to_json(_session(sid).state)}


@app.post("/games/load")
def load(req: LoadRequest):
    state = from_json(req.save)
    sid = str(uuid.uuid4())
    SESSIONS[sid] = GameSession(state=state)
    return _view(sid, SESSIONS[sid])
