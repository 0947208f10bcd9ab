import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from steamcompare.clients.steam_client import SteamAPI
from steamcompare.errors import SteamCompareError
from steamcompare.models.steam import (
    BadgesAndLevel,
    PlayerAggregate,
    PlayerProfile,
    ResolveRequest,
    ResolveResponse,
    TitleStatsResult,
)
from steamcompare.services.game_stats_service import GameStatsService
from steamcompare.services.player_service import PlayerService
from steamcompare.services.resolver import IdentifierResolver
from steamcompare.settings import settings
from steamcompare.titles import CS2, get_title
from steamcompare.utils.cache import Cache, TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/steam")


def get_resolver(request: Request) -> IdentifierResolver:
    return request.app.state.resolver


def get_player_service(request: Request) -> PlayerService:
    return request.app.state.player_service


def get_game_stats_service(request: Request) -> GameStatsService:
    return request.app.state.game_stats_service


SteamId = Annotated[Optional[str], Query(alias="steamId")]


@router.post("/resolve", response_model=ResolveResponse)
def resolve_steam_id(payload: ResolveRequest, resolver: IdentifierResolver = Depends(get_resolver)):
    return ResolveResponse(steam_id=resolver.resolve(payload.identifier))


@router.get("/player", response_model=PlayerAggregate)
def get_player_data(steam_id: SteamId = None, players: PlayerService = Depends(get_player_service)):
    return players.get_player_aggregate(steam_id or "")


@router.get("/summary", response_model=PlayerProfile)
def get_player_summary(steam_id: SteamId = None, players: PlayerService = Depends(get_player_service)):
    return players.get_player_summary(steam_id or "")


@router.get("/games")
def get_owned_games(steam_id: SteamId = None, players: PlayerService = Depends(get_player_service)):
    return players.get_owned_games(steam_id or "")


@router.get("/stats", response_model=BadgesAndLevel)
def get_player_stats(steam_id: SteamId = None, players: PlayerService = Depends(get_player_service)):
    return players.get_badges_and_level(steam_id or "")


@router.get("/recent")
def get_recently_played_games(
    steam_id: SteamId = None, players: PlayerService = Depends(get_player_service)
):
    return players.get_recently_played(steam_id or "")


@router.get("/game-stats")
def get_game_stats(
    steam_id: SteamId = None,
    app_id: Annotated[Optional[int], Query(alias="appId")] = None,
    games: GameStatsService = Depends(get_game_stats_service),
):
    return games.get_game_stats(steam_id or "", app_id)


@router.get("/cs2-stats", response_model=TitleStatsResult)
def get_cs2_stats(steam_id: SteamId = None, games: GameStatsService = Depends(get_game_stats_service)):
    return games.get_title_stats(steam_id or "", CS2)


# Must stay after /game-stats and /cs2-stats, which it would otherwise shadow.
@router.get("/{slug}-stats", response_model=TitleStatsResult)
def get_title_stats(
    slug: str, steam_id: SteamId = None, games: GameStatsService = Depends(get_game_stats_service)
):
    title = get_title(slug)
    return games.get_title_stats(steam_id or "", title)


async def handle_app_error(request: Request, exc: SteamCompareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        content = {"error": exc.public_message}
        if settings.debug:
            content["hint"] = exc.message[:200]
        return JSONResponse(status_code=exc.status_code, content=content)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(str(err["loc"][-1]) for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": f"Invalid request parameters: {fields}"})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"error": "Internal server error"}
    if settings.debug:
        content["hint"] = str(exc)[:200]
    return JSONResponse(status_code=500, content=content)


def create_app(client: Optional[SteamAPI] = None, cache: Optional[Cache] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        client: Steam Web API client (a new SteamAPI from settings when None).
        cache: Cache shared by all services (a new in-memory TTLCache when None).
    """
    client = client or SteamAPI()
    cache = cache if cache is not None else TTLCache()

    app = FastAPI(title="Steam Compare API")
    app.state.resolver = IdentifierResolver(client)
    app.state.player_service = PlayerService(client, cache)
    app.state.game_stats_service = GameStatsService(client, cache)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SteamCompareError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    app.include_router(router)
    return app
