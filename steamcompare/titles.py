from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Union

from steamcompare.errors import NotFoundError
from steamcompare.models.steam import StatDefinition

Number = Union[int, float]
DeriveFn = Callable[[Mapping[str, Number]], Dict[str, Number]]


@dataclass(frozen=True)
class TitleSpec:
    """
    A supported title and the stats shown for it.

    `stat_definitions` is the allow-list of upstream stat keys that reach the client.
    When `derive` is set it replaces the plain projection and receives every stat
    Steam returned.
    """

    slug: str
    app_id: int
    name: str
    stat_definitions: Dict[str, StatDefinition]
    derive: Optional[DeriveFn] = None


def _defs(**labels: str) -> Dict[str, StatDefinition]:
    return {key: StatDefinition(label=label) for key, label in labels.items()}


def derive_cs2_stats(raw: Mapping[str, Number]) -> Dict[str, Number]:
    kills = raw.get("total_kills", 0)
    deaths = raw.get("total_deaths", 0)
    headshots = raw.get("total_kills_headshot", 0)
    shots_fired = raw.get("total_shots_fired", 0)
    shots_hit = raw.get("total_shots_hit", 0)

    # With no deaths the raw kill count stands in for the ratio.
    kd_ratio = round(kills / deaths, 2) if deaths > 0 else kills

    return {
        "total_kills": kills,
        "total_deaths": deaths,
        "total_wins": raw.get("total_wins_comp", raw.get("total_wins", 0)),
        "total_matches_played": raw.get("total_matches_played", 0),
        "total_rounds_played": raw.get("total_rounds_played", 0),
        "total_mvps": raw.get("total_mvps", 0),
        "total_damage_done": raw.get("total_damage_done", 0),
        "total_headshots": headshots,
        "total_shots_fired": shots_fired,
        "total_shots_hit": shots_hit,
        "kd_ratio": kd_ratio,
        "headshot_percentage": round(headshots / kills * 100, 1) if kills > 0 else 0,
        "accuracy": round(shots_hit / shots_fired * 100, 1) if shots_fired > 0 else 0,
    }


CS2 = TitleSpec(
    slug="cs2",
    app_id=730,
    name="Counter-Strike 2",
    stat_definitions={
        **_defs(
            total_kills="Total Kills",
            total_deaths="Total Deaths",
            total_wins="Total Wins",
            total_matches_played="Matches Played",
            total_rounds_played="Rounds Played",
            total_mvps="MVPs",
            total_damage_done="Damage Done",
            total_headshots="Headshots",
            total_shots_fired="Shots Fired",
            total_shots_hit="Shots Hit",
            kd_ratio="K/D Ratio",
        ),
        "headshot_percentage": StatDefinition(label="Headshot %", format="percentage"),
        "accuracy": StatDefinition(label="Accuracy", format="percentage"),
    },
    derive=derive_cs2_stats,
)

DOTA2 = TitleSpec(
    slug="dota2",
    app_id=570,
    name="Dota 2",
    stat_definitions=_defs(
        total_kills="Total Kills",
        total_deaths="Total Deaths",
        total_assists="Total Assists",
        total_wins="Total Wins",
        total_matches_played="Matches Played",
    ),
)

TF2 = TitleSpec(
    slug="tf2",
    app_id=440,
    name="Team Fortress 2",
    stat_definitions={
        **_defs(
            iNumberOfKills="Total Kills",
            iNumberOfDeaths="Total Deaths",
            iDamageDealt="Damage Dealt",
        ),
        "iPlayTime": StatDefinition(label="Play Time (seconds)", format="time"),
        **_defs(
            iPointsScored="Points Scored",
            iDominationsCount="Dominations",
        ),
    },
)

L4D2 = TitleSpec(
    slug="l4d2",
    app_id=550,
    name="Left 4 Dead 2",
    stat_definitions=_defs(
        NumKills="Total Kills",
        NumHeadshots="Headshots",
        NumMeleeKills="Melee Kills",
        NumRevives="Revives",
        NumCampaignsCompleted="Campaigns Completed",
    ),
)

PORTAL2 = TitleSpec(
    slug="portal2",
    app_id=620,
    name="Portal 2",
    stat_definitions={
        **_defs(
            NumPortalsPlaced="Portals Placed",
            NumStepsTaken="Steps Taken",
        ),
        "NumSecondsToCompleteGame": StatDefinition(label="Time to Complete", format="time"),
        **_defs(NumGamesCompleted="Games Completed"),
    },
)

TITLES: Dict[str, TitleSpec] = {title.slug: title for title in (CS2, DOTA2, TF2, L4D2, PORTAL2)}


def get_title(slug: str) -> TitleSpec:
    try:
        return TITLES[slug]
    except KeyError:
        raise NotFoundError(f"Unsupported title: {slug}") from None
