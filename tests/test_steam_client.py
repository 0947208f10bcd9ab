import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import requests

from steamcompare.clients.steam_client import SteamAPI
from steamcompare.errors import UpstreamHTTPError, UpstreamTimeoutError, UpstreamUnavailable

STEAM_ID = "76561197960287930"


@pytest.fixture
def steam_client():
    return SteamAPI(api_key="dummy_key", backoff_factor=0.1, max_retries=3, timeout=5)


class TestRequest:
    def test_adds_api_key_and_timeout(self, steam_client):
        """Should send the API key with every request and use the configured timeout."""
        mock_session = MagicMock()
        mock_session.get.return_value = MagicMock(status_code=200, json=lambda: {"response": {}})
        steam_client.session = mock_session

        result = steam_client._request("http://dummy.url", {"steamid": STEAM_ID})

        assert result == {"response": {}}
        mock_session.get.assert_called_once_with(
            "http://dummy.url", params={"key": "dummy_key", "steamid": STEAM_ID}, timeout=5
        )

    def test_retries_on_429(self, steam_client):
        """Should retry on 429 and succeed after backoff."""
        good_response = {"response": {"players": []}}
        mock_session = MagicMock()
        mock_session.get.side_effect = [
            MagicMock(status_code=429, json=lambda: {}),
            MagicMock(status_code=429, json=lambda: {}),
            MagicMock(status_code=200, json=lambda: good_response),
        ]
        steam_client.session = mock_session
        with patch("time.sleep", return_value=None) as sleep_mock:
            result = steam_client._request("http://dummy.url", {})
            assert result == good_response
            assert mock_session.get.call_count == 3
            assert sleep_mock.call_count == 2

    def test_retries_on_server_error(self, steam_client):
        """Should treat 5xx responses as transient."""
        mock_session = MagicMock()
        mock_session.get.side_effect = [
            MagicMock(status_code=503, json=lambda: {}),
            MagicMock(status_code=200, json=lambda: {"ok": True}),
        ]
        steam_client.session = mock_session
        with patch("time.sleep", return_value=None):
            assert steam_client._request("http://dummy.url", {}) == {"ok": True}

    def test_client_error_is_not_retried(self, steam_client):
        """Should raise UpstreamHTTPError on 4xx without retrying."""
        mock_session = MagicMock()
        mock_session.get.return_value = MagicMock(status_code=403, json=lambda: {})
        steam_client.session = mock_session
        with patch("time.sleep", return_value=None) as sleep_mock:
            with pytest.raises(UpstreamHTTPError) as exc_info:
                steam_client._request("http://dummy.url", {})
        assert exc_info.value.upstream_status == 403
        assert mock_session.get.call_count == 1
        sleep_mock.assert_not_called()

    def test_fails_after_max_retries(self, steam_client):
        """Should raise UpstreamUnavailable after max retries fail."""
        mock_session = MagicMock()
        mock_session.get.side_effect = requests.ConnectionError("Network error")
        steam_client.session = mock_session
        with patch("time.sleep", return_value=None):
            with pytest.raises(UpstreamUnavailable):
                steam_client._request("http://dummy.url", {})
        assert mock_session.get.call_count == 4

    def test_timeout_raises_upstream_timeout(self, steam_client):
        """Should raise UpstreamTimeoutError when every attempt times out."""
        mock_session = MagicMock()
        mock_session.get.side_effect = requests.Timeout("read timed out")
        steam_client.session = mock_session
        with patch("time.sleep", return_value=None):
            with pytest.raises(UpstreamTimeoutError):
                steam_client._request("http://dummy.url", {})

    def test_non_json_body(self, steam_client):
        """Should raise UpstreamUnavailable when the body cannot be decoded."""
        bad = MagicMock(status_code=200)
        bad.json.side_effect = ValueError("Expecting value")
        mock_session = MagicMock()
        mock_session.get.return_value = bad
        steam_client.session = mock_session
        with pytest.raises(UpstreamUnavailable):
            steam_client._request("http://dummy.url", {})

    def test_first_try_success_does_not_sleep(self, steam_client):
        """Should only ever sleep between retries, never before the first attempt."""
        mock_session = MagicMock()
        mock_session.get.return_value = MagicMock(status_code=200, json=lambda: {"ok": True})
        steam_client.session = mock_session
        with patch("time.sleep") as sleep_mock:
            assert steam_client._request("http://dummy.url", {}) == {"ok": True}
            sleep_mock.assert_not_called()


class TestSession:
    def test_injected_session_is_shared(self):
        """Should use a session passed to the constructor from every thread."""
        session = requests.Session()
        client = SteamAPI(api_key="dummy_key", session=session)
        seen = []

        worker = threading.Thread(target=lambda: seen.append(client.session))
        worker.start()
        worker.join()

        assert client.session is session
        assert seen == [session]

    def test_default_session_is_per_thread(self):
        """Should give each thread its own requests.Session when none is injected."""
        client = SteamAPI(api_key="dummy_key")
        main_session = client.session
        seen = []

        def use_client():
            seen.append(client.session)
            seen.append(client.session)

        worker = threading.Thread(target=use_client)
        worker.start()
        worker.join()

        assert isinstance(main_session, requests.Session)
        assert client.session is main_session
        assert seen[0] is seen[1]
        assert seen[0] is not main_session

    def test_aggregate_workers_use_separate_sessions(self):
        """Should not share one session across ThreadPoolExecutor workers."""
        client = SteamAPI(api_key="dummy_key")
        barrier = threading.Barrier(3)

        def session_id(_):
            barrier.wait(timeout=5)
            return id(client.session)

        with ThreadPoolExecutor(max_workers=3) as pool:
            ids = list(pool.map(session_id, range(3)))

        assert len(set(ids)) == 3


class TestEndpoints:
    def test_resolve_vanity_url(self, steam_client):
        """Should call ResolveVanityURL with the vanity name."""
        mock_response = {"response": {"success": 1, "steamid": STEAM_ID}}
        with patch.object(steam_client, "_request", return_value=mock_response) as mock_request:
            assert steam_client.resolve_vanity_url("gabe") == mock_response
            mock_request.assert_called_once_with(
                f"{steam_client.BASE_URL}/ISteamUser/ResolveVanityURL/v1/", {"vanityurl": "gabe"}
            )

    def test_get_owned_games_with_filter(self, steam_client):
        """Should encode the app filter as indexed parameters."""
        with patch.object(steam_client, "_request", return_value={"response": {}}) as mock_request:
            steam_client.get_owned_games(STEAM_ID, app_ids=[730])
            mock_request.assert_called_once_with(
                f"{steam_client.BASE_URL}/IPlayerService/GetOwnedGames/v1/",
                {
                    "steamid": STEAM_ID,
                    "include_appinfo": 1,
                    "include_played_free_games": 1,
                    "appids_filter[0]": 730,
                },
            )

    def test_get_owned_games_without_appinfo(self, steam_client):
        """Should omit the optional flags when disabled."""
        with patch.object(steam_client, "_request", return_value={}) as mock_request:
            steam_client.get_owned_games(STEAM_ID, include_appinfo=False, include_played_free_games=False)
            _, params = mock_request.call_args.args
            assert params == {"steamid": STEAM_ID}

    def test_get_recently_played_games(self, steam_client):
        """Should request five recent games by default."""
        with patch.object(steam_client, "_request", return_value={}) as mock_request:
            steam_client.get_recently_played_games(STEAM_ID)
            _, params = mock_request.call_args.args
            assert params == {"steamid": STEAM_ID, "count": 5}

    def test_get_user_stats_for_game(self, steam_client):
        """Should pass both the player and the app id."""
        with patch.object(steam_client, "_request", return_value={}) as mock_request:
            steam_client.get_user_stats_for_game(STEAM_ID, 570)
            url, params = mock_request.call_args.args
            assert url.endswith("/ISteamUserStats/GetUserStatsForGame/v2/")
            assert params == {"steamid": STEAM_ID, "appid": 570}
