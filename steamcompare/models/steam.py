from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlayerProfile(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    steamid: str = Field(..., description="Canonical SteamID64")
    personaname: str = Field("", description="Display name")
    profileurl: str = Field("", description="Community profile URL")
    avatar: str = Field("", description="32x32 avatar URL")
    avatarmedium: str = Field("", description="64x64 avatar URL")
    avatarfull: str = Field("", description="184x184 avatar URL")
    timecreated: Optional[int] = Field(None, description="Unix timestamp of account creation")


class OwnedGame(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    appid: int = Field(..., description="Steam application ID")
    name: str = Field("", description="Game name (present when app info was requested)")
    playtime_forever: int = Field(0, description="Total playtime in minutes")
    playtime_2weeks: Optional[int] = Field(None, description="Playtime in the last two weeks, minutes")
    img_icon_url: Optional[str] = Field(None, description="Icon hash")


class OwnedGamesSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    game_count: int = 0
    games: List[OwnedGame] = Field(default_factory=list)


class PlayerStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    level: int = 0
    total_games: int = Field(0, alias="totalGames")
    total_playtime: int = Field(0, alias="totalPlaytime", description="Minutes")
    total_badges: int = Field(0, alias="totalBadges")
    perfect_games: int = Field(0, alias="perfectGames")


class PlayerAggregate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    steam_id: str = Field(..., alias="steamId")
    profile: PlayerProfile
    stats: PlayerStats
    top_games: List[OwnedGame] = Field(default_factory=list, alias="topGames")
    recent_games: List[OwnedGame] = Field(default_factory=list, alias="recentGames")


class StatDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    format: Literal["number", "time", "percentage"] = "number"


class AchievementSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    achieved: int = 0
    percentage: float = 0


class PrivacyRestricted(BaseModel):
    """Profile or game details are not public."""

    model_config = ConfigDict(frozen=True)

    status: Literal["privacy_restricted"] = "privacy_restricted"
    owns_game: bool = False
    privacy_issue: bool = True
    error: str


class NotOwned(BaseModel):
    """Library is readable but the title is missing from it (or its details are hidden)."""

    model_config = ConfigDict(frozen=True)

    status: Literal["not_owned"] = "not_owned"
    owns_game: bool = False
    privacy_issue: bool = True
    error: str


class StatsPrivate(BaseModel):
    """Title is owned but its stats are hidden."""

    model_config = ConfigDict(frozen=True)

    status: Literal["stats_private"] = "stats_private"
    owns_game: bool = True
    stats_private: bool = True
    playtime: int = 0
    error: str = "Game stats are private or not available"


class StatsAvailable(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["available"] = "available"
    owns_game: bool = True
    playtime: int = 0
    game_name: str
    app_id: int
    achievements: AchievementSummary
    stats: Dict[str, Union[int, float]]
    stat_definitions: Dict[str, StatDefinition]


TitleStatsResult = Annotated[
    Union[PrivacyRestricted, NotOwned, StatsPrivate, StatsAvailable],
    Field(discriminator="status"),
]


class ResolveRequest(BaseModel):
    identifier: Optional[str] = None


class ResolveResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    steam_id: str = Field(..., alias="steamId")


class BadgesAndLevel(BaseModel):
    badges: Dict[str, Any] = Field(default_factory=dict)
    level: int = 0
