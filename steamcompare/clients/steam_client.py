import logging
import threading
import time
from typing import Any, Dict, Iterable, Optional

import requests
from requests import Response

from steamcompare.errors import UpstreamHTTPError, UpstreamTimeoutError, UpstreamUnavailable
from steamcompare.settings import settings

logger = logging.getLogger(__name__)


class SteamAPI:
    """
    Client for the player-facing parts of the Steam Web API.
    Every method returns the decoded JSON body as-is; envelope handling is left to the caller.

    Args:
        api_key: Steam API key (if None, uses settings.steam_api_key).
        max_retries: Number of retries after the first failed attempt.
        backoff_factor: Delay multiplier for retries (linear backoff).
        timeout: HTTP request timeout in seconds.
        session: Optional pre-configured requests.Session shared by every caller.
            Without one, each thread gets its own session on first use.
    """

    BASE_URL = "https://api.steampowered.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_retries: Optional[int] = None,
        backoff_factor: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or settings.steam_api_key
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.backoff_factor = settings.backoff_factor if backoff_factor is None else backoff_factor
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.base_url = (base_url or settings.steam_api_base_url or self.BASE_URL).rstrip("/")

        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        # requests.Session is not thread-safe; the aggregate and the server threadpool both call in
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    @session.setter
    def session(self, value: Optional[requests.Session]) -> None:
        self._shared_session = value

    def _request(self, url: str, params: Dict[str, Any]) -> dict:
        """
        Perform a GET request with retry and linear backoff.

        Args:
            url: Full API endpoint URL.
            params: Query parameters for the request (the API key is added here).

        Returns:
            Parsed JSON response as a Python dictionary.

        Raises:
            UpstreamHTTPError: On a 4xx status other than 429.
            UpstreamTimeoutError: If the last attempt timed out.
            UpstreamUnavailable: If all attempts fail or the body is not JSON.
        """
        query = {"key": self.api_key, **params}
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                resp: Response = self.session.get(url, params=query, timeout=self.timeout)
            except requests.Timeout as e:
                last_error = e
                logger.warning(f"Request to {url} timed out (attempt {attempt}/{attempts})")
            except requests.RequestException as e:
                last_error = e
                logger.warning(f"Request to {url} failed (attempt {attempt}/{attempts}): {e}")
            else:
                if resp.status_code == 429 or resp.status_code >= 500:
                    last_error = UpstreamHTTPError(url, resp.status_code)
                    logger.warning(f"{url} responded with {resp.status_code} (attempt {attempt}/{attempts})")
                elif resp.status_code >= 400:
                    raise UpstreamHTTPError(url, resp.status_code)
                else:
                    try:
                        return resp.json()
                    except ValueError as e:
                        raise UpstreamUnavailable(f"{url} returned a non-JSON body") from e

            if attempt < attempts:
                time.sleep(self.backoff_factor * attempt)

        logger.error(f"Request to {url} failed after {attempts} attempts: {last_error}")
        if isinstance(last_error, requests.Timeout):
            raise UpstreamTimeoutError(f"{url} timed out after {self.timeout}s") from last_error
        raise UpstreamUnavailable(f"Failed to fetch {url} after {attempts} attempts") from last_error

    def resolve_vanity_url(self, vanity_name: str) -> Dict[str, Any]:
        """
        Resolve a vanity profile name to a SteamID64.

        Returns:
            Dict: Raw response, `{"response": {"success": 1, "steamid": "..."}}` on success.
        """
        url = f"{self.base_url}/ISteamUser/ResolveVanityURL/v1/"
        return self._request(url, {"vanityurl": vanity_name})

    def get_player_summaries(self, steam_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/ISteamUser/GetPlayerSummaries/v2/"
        return self._request(url, {"steamids": steam_id})

    def get_owned_games(
        self,
        steam_id: str,
        include_appinfo: bool = True,
        include_played_free_games: bool = True,
        app_ids: Optional[Iterable[int]] = None,
    ) -> Dict[str, Any]:
        """
        Fetch the owned games of a player.

        Args:
            steam_id: Canonical SteamID64.
            include_appinfo: Include names and icon hashes.
            include_played_free_games: Include free games the player has launched.
            app_ids: Restrict the result to these app ids (sent as `appids_filter[i]`).

        Returns:
            Dict: Raw response; `response` is missing or empty when game details are private.
        """
        url = f"{self.base_url}/IPlayerService/GetOwnedGames/v1/"
        params: Dict[str, Any] = {"steamid": steam_id}
        if include_appinfo:
            params["include_appinfo"] = 1
        if include_played_free_games:
            params["include_played_free_games"] = 1
        for idx, app_id in enumerate(app_ids or []):
            params[f"appids_filter[{idx}]"] = app_id
        return self._request(url, params)

    def get_badges(self, steam_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/IPlayerService/GetBadges/v1/"
        return self._request(url, {"steamid": steam_id})

    def get_steam_level(self, steam_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/IPlayerService/GetSteamLevel/v1/"
        return self._request(url, {"steamid": steam_id})

    def get_recently_played_games(self, steam_id: str, count: int = 5) -> Dict[str, Any]:
        url = f"{self.base_url}/IPlayerService/GetRecentlyPlayedGames/v1/"
        return self._request(url, {"steamid": steam_id, "count": count})

    def get_user_stats_for_game(self, steam_id: str, app_id: int) -> Dict[str, Any]:
        """
        Fetch the raw stat counters of a player for one app.

        Steam answers 400/403 when the player's game details are private,
        which surfaces here as UpstreamHTTPError.
        """
        url = f"{self.base_url}/ISteamUserStats/GetUserStatsForGame/v2/"
        return self._request(url, {"steamid": steam_id, "appid": app_id})

    def get_player_achievements(self, steam_id: str, app_id: int) -> Dict[str, Any]:
        url = f"{self.base_url}/ISteamUserStats/GetPlayerAchievements/v1/"
        return self._request(url, {"steamid": steam_id, "appid": app_id})
