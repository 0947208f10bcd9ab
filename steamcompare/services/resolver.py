import logging
import re
from typing import Optional

from steamcompare.clients.steam_client import SteamAPI
from steamcompare.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

STEAM_ID_LENGTH = 17
STEAM_ID_PATTERN = re.compile(rf"^[0-9]{{{STEAM_ID_LENGTH}}}$")
PROFILE_URL_PATTERN = re.compile(r"steamcommunity\.com/(?:id|profiles)/([^/?#]+)", re.IGNORECASE)


def is_steam_id(value: Optional[str]) -> bool:
    """True when `value` already has the canonical SteamID64 shape."""
    return bool(value) and STEAM_ID_PATTERN.match(value) is not None


def normalize_identifier(identifier: str) -> str:
    """
    Reduce a pasted profile URL to its last path segment.

    `https://steamcommunity.com/id/gabelogannewell/` -> `gabelogannewell`
    `steamcommunity.com/profiles/76561197960287930` -> `76561197960287930`
    """
    value = identifier.strip()
    match = PROFILE_URL_PATTERN.search(value)
    if match:
        return match.group(1)
    return value


class IdentifierResolver:
    """Turns user input (SteamID64, vanity name or profile URL) into a canonical SteamID64."""

    def __init__(self, client: SteamAPI):
        self.client = client

    def resolve(self, identifier: Optional[str]) -> str:
        if not identifier or not identifier.strip():
            raise ValidationError("Identifier required")

        value = normalize_identifier(identifier)
        if is_steam_id(value):
            return value

        data = self.client.resolve_vanity_url(value)
        response = data.get("response") or {}
        steam_id = response.get("steamid")
        if response.get("success") == 1 and is_steam_id(steam_id):
            logger.info(f"Resolved vanity name '{value}' to {steam_id}")
            return steam_id

        logger.info(f"Vanity name '{value}' could not be resolved: {response.get('message', 'no match')}")
        raise NotFoundError("Steam ID not found")
