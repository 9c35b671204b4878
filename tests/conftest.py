from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from failing_up.models import (
    Arc,
    ArcStage,
    Bandmate,
    EventChoice,
    GameEvent,
    GameState,
    LabelDeal,
    Manager,
    Player,
    RivalBand,
    Song,
    Temptation,
    TemptationChoice,
)
from failing_up.state import create_game_state


def make_player(**overrides: Any) -> Player:
    stats: Dict[str, Any] = dict(
        name="Tester",
        talent=50,
        skill=40,
        image=30,
        hype=30,
        money=1000,
        health=70,
        stability=60,
        cred=20,
        core_fans=100,
    )
    stats.update(overrides)
    return Player(**stats)


def make_bandmate(id: str = "bm_1", role: str = "guitar", **overrides: Any) -> Bandmate:
    attrs: Dict[str, Any] = dict(
        id=id,
        name=f"Player {id}",
        role=role,
        talent=50,
        reliability=60,
        vice=20,
        loyalty=50,
    )
    attrs.update(overrides)
    return Bandmate(**attrs)


def make_song(id: str = "song_1", **overrides: Any) -> Song:
    attrs: Dict[str, Any] = dict(
        id=id,
        title=f"Title {id}",
        quality=60,
        style="punk",
        hit_potential=50,
        written_by_player=True,
        week_written=1,
    )
    attrs.update(overrides)
    return Song(**attrs)


def make_deal(**overrides: Any) -> LabelDeal:
    attrs: Dict[str, Any] = dict(
        id="deal_1",
        name="Rust Records",
        advance=1000,
        recoup_debt=1000,
        royalty_rate=0.2,
        streaming_royalty_rate=0.25,
        creative_control="high",
        week_signed=1,
    )
    attrs.update(overrides)
    return LabelDeal(**attrs)


def make_manager(id: str = "mgr_1", **overrides: Any) -> Manager:
    attrs: Dict[str, Any] = dict(
        id=id,
        name="Tony Sharp",
        booking_skill=60,
        connections=40,
        reliability=70,
        reputation=50,
        cut=0.15,
    )
    attrs.update(overrides)
    return Manager(**attrs)


def make_rival(id: str = "rival_1", **overrides: Any) -> RivalBand:
    attrs: Dict[str, Any] = dict(
        id=id,
        name=f"The {id.title()}s",
        style="punk",
        fame_tier="local",
        reputation=40,
        hype=40,
        week_formed=-50,
    )
    attrs.update(overrides)
    return RivalBand(**attrs)


def make_state(
    player: Optional[Player] = None,
    bandmates: Optional[List[Bandmate]] = None,
    **overrides: Any,
) -> GameState:
    """A quiet state: no band members unless asked for, a fixed seed."""
    return GameState(
        seed=overrides.pop("seed", 1234),
        player=player or make_player(),
        band_name="The Fixtures",
        bandmates=list(bandmates or []),
        **overrides,
    )


def make_managed_state(
    manager: Optional[Manager] = None,
    player: Optional[Player] = None,
    **overrides: Any,
) -> GameState:
    """make_state with a manager on the books and the flag to match."""
    player = player or make_player()
    player.flags.has_manager = True
    return make_state(player=player, manager=manager or make_manager(), **overrides)


def make_event(
    id: str = "EV_TEST",
    *,
    choices: Optional[List[EventChoice]] = None,
    **overrides: Any,
) -> GameEvent:
    return GameEvent(
        id=id,
        text_intro="Something happens.",
        choices=choices or [
            EventChoice(id="yes", label="Yes", outcome_text="ok", stat_changes={"hype": 5}),
            EventChoice(id="no", label="No", outcome_text="fine"),
        ],
        **overrides,
    )


def make_temptation(id: str = "tempt", base_chance: float = 1.0, **overrides: Any) -> Temptation:
    return Temptation(
        id=id,
        source="self",
        prompt="prompt",
        offer="offer",
        base_chance=base_chance,
        accept=TemptationChoice(id="accept", label="Sure", result_text="", effects={"addiction": 5}),
        decline=TemptationChoice(id="decline", label="No", result_text="", effects={"cred": 1}),
        **overrides,
    )


def make_arc(id: str = "ARC_TEST", stages: int = 3, **overrides: Any) -> Arc:
    return Arc(
        id=id,
        name=id.title(),
        stages=[
            ArcStage(stage_id=i, event_ids=[f"{id}_S{i}"], advance_conditions={"min_hype": 50})
            for i in range(stages)
        ],
        **overrides,
    )


@pytest.fixture
def state() -> GameState:
    return make_state()


@pytest.fixture
def fresh_game() -> GameState:
    return create_game_state("Joey", seed=42)


@pytest.fixture
def no_content() -> Dict[str, list]:
    """Keyword args for resolve_turn that switch off every trigger catalog."""
    return {"events": [], "arcs": [], "temptations": []}
