import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ALLOW_ORIGINS
from .db import configure_db, init_db
from .logging_config import setup_logging
from .routers.auth import router as auth_router
from .routers.matches import router as matches_router
from .routers.scoring import router as scoring_router
from .routers.tournaments import router as tournaments_router
from .settings import Settings
from .ws import EVENT_PONG, feed

log = logging.getLogger(__name__)


def create_app(settings: Settings) -> FastAPI:
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        log.info("DB ready (%s), bracket passes capped at %d", settings.db_url, settings.bracket_max_passes)
        yield

    app = FastAPI(
        title="Bracket Pick'em",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    configure_db(settings.db_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (auth_router, tournaments_router, matches_router, scoring_router):
        app.include_router(router)

    # public, read-only feed; clients may ping to keep the socket alive
    @app.websocket("/ws/tournaments/{tournament_id}")
    async def tournament_feed(ws: WebSocket, tournament_id: int) -> None:
        await feed.subscribe(tournament_id, ws)
        try:
            while True:
                await ws.receive_text()
                await feed.send(ws, tournament_id, EVENT_PONG, {})
        except WebSocketDisconnect:
            feed.unsubscribe(tournament_id, ws)

    return app
