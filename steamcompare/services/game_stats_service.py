import logging
from typing import Any, Dict, List, Optional, Union

from steamcompare.clients.steam_client import SteamAPI
from steamcompare.errors import UpstreamError, ValidationError
from steamcompare.models.steam import (
    AchievementSummary,
    NotOwned,
    PrivacyRestricted,
    StatsAvailable,
    StatsPrivate,
)
from steamcompare.settings import settings
from steamcompare.titles import TitleSpec
from steamcompare.utils.cache import Cache, remember

logger = logging.getLogger(__name__)

LIBRARY_PRIVATE = 'Game library is private. Please set "Game details" to Public in Steam Privacy Settings.'
GAME_DETAILS_PRIVATE = (
    'Game library is private. Your profile may be public, but "Game details" must also be set '
    "to Public in Privacy Settings."
)
NOT_OWNED_TEMPLATE = 'Unable to access game library. Either {name} is not owned or "Game details" are set to private.'
STATS_NOT_AVAILABLE = "Stats not available"

TitleStats = Union[PrivacyRestricted, NotOwned, StatsPrivate, StatsAvailable]


def flatten_stats(stats: List[Dict[str, Any]]) -> Dict[str, Union[int, float]]:
    """`[{"name": "total_kills", "value": 10}, ...]` -> `{"total_kills": 10, ...}`"""
    return {stat["name"]: stat.get("value", 0) for stat in stats if "name" in stat}


def summarize_achievements(achievements: List[Dict[str, Any]]) -> AchievementSummary:
    total = len(achievements)
    achieved = sum(1 for achievement in achievements if achievement.get("achieved") == 1)
    percentage = round(achieved / total * 100, 1) if total > 0 else 0
    return AchievementSummary(total=total, achieved=achieved, percentage=percentage)


class GameStatsService:
    """
    Per-title breakdowns for a player.

    Privacy and ownership problems are returned as results, not raised, so the page
    can explain them. Only transport failures of the ownership lookup propagate.
    """

    def __init__(self, client: SteamAPI, cache: Cache, ttl: Optional[int] = None):
        self.client = client
        self.cache = cache
        self.ttl = settings.cache_ttl if ttl is None else ttl

    def get_title_stats(self, steam_id: str, title: TitleSpec) -> TitleStats:
        if not steam_id:
            raise ValidationError("Steam ID required")

        key = f"title:{title.app_id}:{steam_id}"
        return remember(self.cache, key, self.ttl, lambda: self._build_title_stats(steam_id, title))

    def _build_title_stats(self, steam_id: str, title: TitleSpec) -> TitleStats:
        owned = self.client.get_owned_games(steam_id, app_ids=[title.app_id])

        if "response" not in owned:
            return PrivacyRestricted(error=LIBRARY_PRIVATE)
        envelope = owned["response"]
        if not envelope:
            return PrivacyRestricted(error=GAME_DETAILS_PRIVATE)
        games = envelope.get("games") or []
        if not games:
            return NotOwned(error=NOT_OWNED_TEMPLATE.format(name=title.name))

        playtime = games[0].get("playtime_forever") or 0

        raw_stats = self._fetch_stats(steam_id, title.app_id)
        if raw_stats is None:
            logger.info(f"{title.name} stats hidden for {steam_id}")
            return StatsPrivate(playtime=playtime)

        achievements = summarize_achievements(self._fetch_achievements(steam_id, title.app_id))

        if title.derive is not None:
            stats = title.derive(raw_stats)
        else:
            stats = {key: raw_stats.get(key, 0) for key in title.stat_definitions}

        return StatsAvailable(
            playtime=playtime,
            game_name=title.name,
            app_id=title.app_id,
            achievements=achievements,
            stats=stats,
            stat_definitions=title.stat_definitions,
        )

    def _fetch_stats(self, steam_id: str, app_id: int) -> Optional[Dict[str, Union[int, float]]]:
        try:
            data = self.client.get_user_stats_for_game(steam_id, app_id)
        except UpstreamError as e:
            logger.info(f"Stats lookup for app {app_id} failed: {e}")
            return None

        stats = (data.get("playerstats") or {}).get("stats")
        if stats is None:
            return None
        return flatten_stats(stats)

    def _fetch_achievements(self, steam_id: str, app_id: int) -> List[Dict[str, Any]]:
        try:
            data = self.client.get_player_achievements(steam_id, app_id)
        except UpstreamError as e:
            logger.warning(f"Achievements for app {app_id} unavailable, counting none: {e}")
            return []
        return (data.get("playerstats") or {}).get("achievements") or []

    def get_game_stats(self, steam_id: str, app_id: Optional[int]) -> Dict[str, Any]:
        """Raw `playerstats` envelopes of the stats and achievements calls for any app."""
        if not steam_id or not app_id:
            raise ValidationError("Steam ID and App ID required")

        def fetch() -> Dict[str, Any]:
            try:
                stats = self.client.get_user_stats_for_game(steam_id, app_id)
            except UpstreamError as e:
                logger.info(f"Stats lookup for app {app_id} failed: {e}")
                return {"error": STATS_NOT_AVAILABLE}

            try:
                achievements = self.client.get_player_achievements(steam_id, app_id)
            except UpstreamError as e:
                logger.warning(f"Achievements for app {app_id} unavailable: {e}")
                achievements = {}

            return {
                "stats": stats.get("playerstats") or {},
                "achievements": achievements.get("playerstats") or {},
            }

        return remember(self.cache, f"game:{app_id}:{steam_id}", self.ttl, fetch)
