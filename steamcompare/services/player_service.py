import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from steamcompare.clients.steam_client import SteamAPI
from steamcompare.errors import NotFoundError, ValidationError
from steamcompare.models.steam import (
    BadgesAndLevel,
    OwnedGame,
    OwnedGamesSummary,
    PlayerAggregate,
    PlayerProfile,
    PlayerStats,
)
from steamcompare.settings import settings
from steamcompare.utils.cache import Cache, remember

logger = logging.getLogger(__name__)

TOP_GAMES_LIMIT = 5
RECENT_GAMES_LIMIT = 5


def first_player(summaries: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    players = (summaries.get("response") or {}).get("players") or []
    return players[0] if players else None


def count_perfect_games(badges: List[Dict[str, Any]]) -> int:
    """
    Count badges tied to a specific app.

    Game badges carry an `appid`, community badges do not; every game badge is
    counted as a completed game.
    """
    return sum(1 for badge in badges if (badge.get("appid") or 0) > 0)


def top_games(games: List[OwnedGame], limit: int = TOP_GAMES_LIMIT) -> List[OwnedGame]:
    # sorted() is stable, equal playtimes keep upstream order
    return sorted(games, key=lambda game: game.playtime_forever, reverse=True)[:limit]


class PlayerService:
    """
    Builds the player overview shown on the comparison page.

    Args:
        client: Steam Web API client.
        cache: Shared cache for the per-field lookups.
        ttl: Lifetime of cached entries in seconds (defaults to settings.cache_ttl).
        max_workers: Thread pool size for the concurrent upstream calls.
    """

    def __init__(self, client: SteamAPI, cache: Cache, ttl: Optional[int] = None, max_workers: int = 5):
        self.client = client
        self.cache = cache
        self.ttl = settings.cache_ttl if ttl is None else ttl
        self.max_workers = max_workers

    def get_player_aggregate(self, steam_id: str) -> PlayerAggregate:
        """
        Fetch profile, library, badges, level and recent games and merge them.

        The five upstream calls do not depend on each other and run concurrently.
        The result is not cached; each call recomputes it.
        """
        if not steam_id:
            raise ValidationError("Steam ID required")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            summary_f = executor.submit(self.client.get_player_summaries, steam_id)
            games_f = executor.submit(self.client.get_owned_games, steam_id)
            badges_f = executor.submit(self.client.get_badges, steam_id)
            level_f = executor.submit(self.client.get_steam_level, steam_id)
            recent_f = executor.submit(self.client.get_recently_played_games, steam_id, RECENT_GAMES_LIMIT)

            player = first_player(summary_f.result())
            games_data = games_f.result().get("response") or {}
            badges_data = badges_f.result().get("response") or {}
            level_data = level_f.result().get("response") or {}
            recent_data = recent_f.result().get("response") or {}

        if player is None:
            raise NotFoundError("Player not found")

        library = OwnedGamesSummary.model_validate(
            {"game_count": games_data.get("game_count") or 0, "games": games_data.get("games") or []}
        )
        badges = badges_data.get("badges") or []
        recent = [OwnedGame.model_validate(game) for game in (recent_data.get("games") or [])]

        stats = PlayerStats(
            level=level_data.get("player_level") or 0,
            total_games=library.game_count,
            total_playtime=sum(game.playtime_forever for game in library.games),
            total_badges=len(badges),
            perfect_games=count_perfect_games(badges),
        )
        logger.info(
            f"Built aggregate for {steam_id}: {stats.total_games} games, "
            f"{stats.total_playtime} min, level {stats.level}"
        )

        return PlayerAggregate(
            steam_id=steam_id,
            profile=PlayerProfile.model_validate(player),
            stats=stats,
            top_games=top_games(library.games),
            recent_games=recent[:RECENT_GAMES_LIMIT],
        )

    def get_player_summary(self, steam_id: str) -> PlayerProfile:
        if not steam_id:
            raise ValidationError("Steam ID required")

        data = remember(self.cache, f"summary:{steam_id}", self.ttl, lambda: self.client.get_player_summaries(steam_id))
        player = first_player(data)
        if player is None:
            raise NotFoundError("Player not found")
        return PlayerProfile.model_validate(player)

    def get_owned_games(self, steam_id: str) -> Dict[str, Any]:
        """Raw owned-games envelope (`game_count`, `games`)."""
        if not steam_id:
            raise ValidationError("Steam ID required")

        data = remember(self.cache, f"games:{steam_id}", self.ttl, lambda: self.client.get_owned_games(steam_id))
        if "response" not in data:
            raise NotFoundError("Games data not available")
        return data["response"]

    def get_badges_and_level(self, steam_id: str) -> BadgesAndLevel:
        if not steam_id:
            raise ValidationError("Steam ID required")

        def fetch() -> BadgesAndLevel:
            badges = self.client.get_badges(steam_id)
            level = self.client.get_steam_level(steam_id)
            return BadgesAndLevel(
                badges=badges.get("response") or {},
                level=(level.get("response") or {}).get("player_level") or 0,
            )

        return remember(self.cache, f"stats:{steam_id}", self.ttl, fetch)

    def get_recently_played(self, steam_id: str) -> Dict[str, Any]:
        if not steam_id:
            raise ValidationError("Steam ID required")

        data = remember(
            self.cache,
            f"recent:{steam_id}",
            self.ttl,
            lambda: self.client.get_recently_played_games(steam_id, RECENT_GAMES_LIMIT),
        )
        return data.get("response") or {}
