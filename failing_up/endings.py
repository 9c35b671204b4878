# failing_up/endings.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from failing_up.band import active_bandmates
from failing_up.models import GameState
from failing_up.rivals import rivals_with_beef

ENDING_IDS = (
    "LEGEND",
    "STAR",
    "SURVIVOR",
    "CULT_HERO",
    "BURNOUT",
    "TRAGEDY",
    "OBSCURITY",
    "SELLOUT",
    "COMEBACK_KID",
)

# Below this every category is too weak to claim the story.
MIN_ENDING_SCORE = 30
FALLBACK_ENDING = "OBSCURITY"

ADDICTION_ARC = "ARC_ADDICTION"
LABEL_DEAL_ARC = "ARC_LABEL_DEAL"
BAND_BREAKUP_ARC = "ARC_BAND_BREAKUP"
OD_SCARE_EVENT = "ARC_ADDICTION_S3_OD_SCARE"
MEMBER_OVERDOSE_EVENT = "EV_MEMBER_OVERDOSE"


@dataclass(frozen=True)
class Variation:
    condition: Callable[[GameState], bool]
    title: str
    subtitle: str
    narrative: str


@dataclass(frozen=True)
class Ending:
    id: str
    title: str
    subtitle: str
    narrative: str
    variations: List[Variation] = field(default_factory=list)


@dataclass
class EndingCallback:
    text: str
    kind: str  # arc | event | achievement | stat


@dataclass
class EndingResult:
    id: str
    title: str
    subtitle: str
    narrative: str
    callbacks: List[EndingCallback] = field(default_factory=list)


def _platinum_albums(state: GameState) -> int:
    return sum(1 for a in state.albums if a.sales_tier in ("platinum", "diamond"))


ENDINGS: Dict[str, Ending] = {
    "LEGEND": Ending(
        id="LEGEND",
        title="Rock Legend",
        subtitle="They'll remember your name forever",
        narrative=(
            "You did it. You became everything you dreamed of and more. The world knows "
            "your name, your songs play on every station, and a generation of kids picks "
            "up guitars because of you."
        ),
        variations=[
            Variation(
                lambda s: ADDICTION_ARC in s.completed_arc_ids and s.player.addiction < 30,
                "The Survivor Legend",
                "From the edge of destruction to the top of the world",
                "You stared into the abyss and walked back. Now you stand on top of the "
                "world, living proof that rock bottom isn't the end.",
            ),
            Variation(
                lambda s: s.player.cred >= 80,
                "The Authentic Legend",
                "Success without compromise",
                "You never sold out. Every note was real, every lyric true. And somehow "
                "the world loved you for it.",
            ),
        ],
    ),
    "STAR": Ending(
        id="STAR",
        title="Rock Star",
        subtitle="You made it",
        narrative=(
            "You're a rock star. Not the biggest, maybe, but real. The records went gold, "
            "the tours sold out, and when you walk into a room people know who you are."
        ),
        variations=[
            Variation(
                lambda s: s.player.flags.has_label_deal and s.active_deal() is not None,
                "The Label Success",
                "The industry bet on you and won",
                "The label took a chance on you and it paid off. Hit records, plaques on "
                "the wall. You played the game and won.",
            ),
            Variation(
                lambda s: _platinum_albums(s) >= 2,
                "The Hit Machine",
                "Album after album of gold",
                "Your albums flew off the shelves. You figured out how to make music people "
                "loved, and you did it again and again.",
            ),
        ],
    ),
    "SURVIVOR": Ending(
        id="SURVIVOR",
        title="The Lifer",
        subtitle="Still standing after all these years",
        narrative=(
            "You're not famous. You're not rich. But you're still making music and still "
            "paying the bills. That's more than most can say."
        ),
        variations=[
            Variation(
                lambda s: s.player.stability >= 60 and s.player.health >= 60,
                "The Healthy Lifer",
                "You kept your head and your health",
                "You avoided the traps that took down so many others. Rock and roll "
                "doesn't have to destroy you, and you're the proof.",
            ),
            Variation(
                lambda s: len(active_bandmates(s)) >= 3,
                "The Band Lifer",
                "Together through thick and thin",
                "The band stayed together through the fights and the near-misses. The "
                "music is still alive.",
            ),
        ],
    ),
    "CULT_HERO": Ending(
        id="CULT_HERO",
        title="Cult Hero",
        subtitle="The ones who know, know",
        narrative=(
            "You never topped the charts. But ask anyone who really knows music and they "
            "know your name. The collectors and true believers call you their hero."
        ),
        variations=[
            Variation(
                lambda s: s.player.cred >= 70 and s.player.fans < 50_000,
                "The Critic's Darling",
                "Beloved by those who matter",
                "The critics love you. Other musicians love you. You just never figured "
                "out how to reach the masses.",
            ),
            Variation(
                lambda s: len(s.songs) >= 30,
                "The Prolific Underground",
                "A catalog that rewards the devoted",
                "Dozens of songs, each one a gem waiting to be discovered. Someday they'll "
                "realize what they missed.",
            ),
        ],
    ),
    "BURNOUT": Ending(
        id="BURNOUT",
        title="Burned Out",
        subtitle="The flame that burns twice as bright...",
        narrative=(
            "You gave everything to the music. Too much. The fire that drove you consumed "
            "you. Now the songs are silent and the stage is dark."
        ),
        variations=[
            Variation(
                lambda s: s.player.burnout >= 80,
                "Total Exhaustion",
                "Nothing left to give",
                "You pushed until there was nothing left. Not a dramatic ending, just an "
                "empty tank and a body that won't cooperate anymore.",
            ),
            Variation(
                lambda s: BAND_BREAKUP_ARC in s.completed_arc_ids,
                "The Bitter End",
                "It all fell apart",
                "The band imploded. Now you're alone with your memories, wondering if any "
                "of it was worth it.",
            ),
        ],
    ),
    "TRAGEDY": Ending(
        id="TRAGEDY",
        title="Gone Too Soon",
        subtitle="Another one lost to the life",
        narrative=(
            "The music world mourns. Another talent taken too young, another cautionary "
            "tale whispered backstage. Your songs will live on, but you won't."
        ),
        variations=[
            Variation(
                lambda s: s.player.addiction >= 80,
                "The 27 Club",
                "Joined the legends too soon",
                "Addiction took you like it took so many before. Cold comfort for the ones "
                "you left behind.",
            ),
            Variation(
                lambda s: s.player.fans >= 100_000,
                "A Legend Dies",
                "The world weeps",
                "You were on top of the world. Then you were gone. Vigils in the streets, "
                "candles in the windows.",
            ),
            Variation(
                lambda s: ADDICTION_ARC in s.completed_arc_ids,
                "The Long Goodbye",
                "Everyone saw it coming",
                "They tried to help. The interventions, the rehab, the second chances. In "
                "the end the demons won.",
            ),
        ],
    ),
    "OBSCURITY": Ending(
        id="OBSCURITY",
        title="Faded Away",
        subtitle="Whatever happened to...?",
        narrative=(
            "The phone stopped ringing. The gigs dried up. One day you realized no one "
            "remembered your name. The dream died quietly."
        ),
        variations=[
            Variation(
                lambda s: s.player.industry_goodwill < 20,
                "Blacklisted",
                "Doors closed everywhere",
                "You burned too many bridges. Every door in the industry is closed. Not "
                "even a cruel ending, just silence.",
            ),
            Variation(
                lambda s: s.player.money < -500,
                "Broke and Forgotten",
                "The bills came due",
                "The debts piled up and the creditors called. In the end you had to walk "
                "away from the music and the dream.",
            ),
        ],
    ),
    "SELLOUT": Ending(
        id="SELLOUT",
        title="The Sellout",
        subtitle="You got the money, they got your soul",
        narrative=(
            "You made it. Sort of. The bank account's full, but the music stopped meaning "
            "anything a long time ago."
        ),
        variations=[
            Variation(
                lambda s: s.player.money >= 50_000 and s.player.cred < 30,
                "The Commercial Machine",
                "Success without satisfaction",
                "You wrote the jingles and played the corporate gigs. The checks cleared, "
                "but somewhere along the way you lost the plot.",
            ),
        ],
    ),
    "COMEBACK_KID": Ending(
        id="COMEBACK_KID",
        title="The Comeback Kid",
        subtitle="Everyone loves a redemption story",
        narrative=(
            "You fell. Hard. But you got back up. The comeback is the best story in rock "
            "and roll, and you're living proof."
        ),
        variations=[
            Variation(
                lambda s: OD_SCARE_EVENT in s.triggered_event_ids
                and s.player.addiction < 30
                and s.player.fans >= 10_000,
                "From Rock Bottom",
                "The ultimate second act",
                "They wrote you off. Obituaries half-written. Then you came back sober and "
                "stronger.",
            ),
        ],
    ),
}


# =============================================================================
# Scoring
# =============================================================================

def ending_score(ending_id: str, state: GameState) -> int:
    p = state.player
    reason = state.game_over_reason
    arcs = state.completed_arc_ids
    score = 0

    if ending_id == "LEGEND":
        if p.fans >= 500_000:
            score += 100
        elif p.fans >= 200_000:
            score += 50
        if p.cred >= 70:
            score += 30
        if p.money >= 100_000:
            score += 20
        if LABEL_DEAL_ARC in arcs:
            score += 20

    elif ending_id == "STAR":
        if p.fans >= 100_000:
            score += 80
        elif p.fans >= 50_000:
            score += 50
        if p.money >= 50_000:
            score += 30
        if p.hype >= 60:
            score += 20

    elif ending_id == "SURVIVOR":
        if 5_000 <= p.fans < 100_000:
            score += 50
        if p.health >= 50:
            score += 30
        if p.stability >= 50:
            score += 30
        if p.money >= 0:
            score += 20
        if reason == "time_limit":
            score += 40

    elif ending_id == "CULT_HERO":
        if p.cred >= 60:
            score += 50
        if 1_000 <= p.fans < 50_000:
            score += 40
        if len(state.songs) >= 20:
            score += 20

    elif ending_id == "BURNOUT":
        if p.burnout >= 70:
            score += 60
        if p.stability < 30:
            score += 40
        if BAND_BREAKUP_ARC in arcs:
            score += 30
        if reason == "band_collapsed":
            score += 50

    elif ending_id == "TRAGEDY":
        if reason == "death":
            score += 200

    elif ending_id == "OBSCURITY":
        if p.fans < 1_000:
            score += 60
        if p.industry_goodwill < 20:
            score += 40
        if reason == "broke":
            score += 50
        if p.hype < 20:
            score += 30

    elif ending_id == "SELLOUT":
        if p.money >= 30_000 and p.cred < 40:
            score += 70
        if p.industry_goodwill >= 60 and p.cred < 40:
            score += 40

    elif ending_id == "COMEBACK_KID":
        if ADDICTION_ARC in arcs and p.addiction < 40 and p.fans >= 10_000:
            score += 100

    return score


def ending_scores(state: GameState) -> Dict[str, int]:
    return {ending_id: ending_score(ending_id, state) for ending_id in ENDING_IDS}


def determine_ending(state: GameState) -> str:
    """
    Highest score wins; ties go to the category listed first. Death always
    ends in tragedy, and a weak field falls back to obscurity.
    """
    if state.game_over_reason == "death":
        return "TRAGEDY"

    scores = ending_scores(state)
    best = max(ENDING_IDS, key=lambda e: scores[e])
    if scores[best] >= MIN_ENDING_SCORE:
        return best
    return FALLBACK_ENDING


# =============================================================================
# Presentation
# =============================================================================

def ending_callbacks(state: GameState) -> List[EndingCallback]:
    p = state.player
    arcs = state.completed_arc_ids
    events = state.triggered_event_ids
    out: List[EndingCallback] = []

    if ADDICTION_ARC in arcs:
        if p.addiction < 30:
            out.append(EndingCallback(
                "You faced your demons and won. The recovery wasn't easy, but you made it.", "arc"))
        else:
            out.append(EndingCallback(
                "The addiction spiral left its mark. Some wounds never fully heal.", "arc"))

    deal = state.active_deal()
    if LABEL_DEAL_ARC in arcs and deal is not None:
        out.append(EndingCallback(
            f"The deal with {deal.name} shaped your career in ways you never expected.", "arc"))

    if BAND_BREAKUP_ARC in arcs:
        out.append(EndingCallback("The breakup hurt. Some of them still won't talk to you.", "arc"))

    feuds = rivals_with_beef(state)
    if feuds:
        out.append(EndingCallback(f"Your feud with {feuds[0].name} never really ended.", "event"))

    if MEMBER_OVERDOSE_EVENT in events:
        dead = next((b for b in state.bandmates if b.status == "dead"), None)
        if dead is not None:
            out.append(EndingCallback(
                f"You never forgot {dead.name}. Their empty chair haunts every rehearsal.", "event"))

    if OD_SCARE_EVENT in events:
        out.append(EndingCallback(
            "That night in the hospital changed everything. You saw the other side and came back.",
            "event",
        ))

    platinum = _platinum_albums(state)
    if platinum:
        plural = "s" if platinum > 1 else ""
        out.append(EndingCallback(
            f"{platinum} platinum album{plural}. Not bad for a kid with a dream.", "achievement"))

    if p.fans >= 100_000:
        out.append(EndingCallback(
            f"{p.fans:,} people know your name. That's a small city.", "achievement"))

    outlasted = sum(1 for r in state.rival_bands if r.status in ("broken_up", "retired"))
    if outlasted:
        plural = "s" if outlasted > 1 else ""
        out.append(EndingCallback(
            f"You outlasted {outlasted} band{plural} who came up alongside you.", "achievement"))

    if p.stability >= 80:
        out.append(EndingCallback(
            "Through it all, you kept your head. That's rarer than platinum records.", "stat"))
    if p.cred >= 80:
        out.append(EndingCallback(
            "You never compromised. The music always came first. They respect that.", "stat"))
    if p.money >= 100_000:
        out.append(EndingCallback(
            "You actually made money doing this. That puts you ahead of most musicians.", "stat"))

    return out


def get_ending_result(state: GameState, ending_id: Optional[str] = None) -> EndingResult:
    """Title and narrative for the final screen. No randomness: the first matching variation wins."""
    ending_id = ending_id or state.ending_id or determine_ending(state)
    ending = ENDINGS.get(ending_id) or ENDINGS[FALLBACK_ENDING]

    title, subtitle, narrative = ending.title, ending.subtitle, ending.narrative
    for variation in ending.variations:
        if variation.condition(state):
            title, subtitle, narrative = variation.title, variation.subtitle, variation.narrative
            break

    return EndingResult(
        id=ending.id,
        title=title,
        subtitle=subtitle,
        narrative=narrative,
        callbacks=ending_callbacks(state),
    )
