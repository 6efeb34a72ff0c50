#!/usr/bin/env python3
"""
FastAPI server for KaraokeVerse profiles and songs.

Endpoints (all under /api):
    POST /profiles            - Create a player profile
    GET  /profiles/{id}       - Fetch a profile
    PUT  /profiles/{id}       - Rename a profile, refresh lastActive
    GET  /songs?theme=        - List songs, optionally for one room theme
    GET  /songs/search?q=     - Search songs by title or artist
    GET  /health              - Liveness + database check

Errors are returned as {"error": "<message>"}.
"""

from typing import Any, Generator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from karaoke.log import get_logger

from . import repository
from .config import CORS_ORIGINS, DISPLAY_NAME_MAX, DISPLAY_NAME_MIN
from .db import get_engine, init_db, make_session_factory
from .schemas import ProfileRequest, ProfileResponse, SongListResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


# ─────────────────────────────────────────────────────────────────
# Dependencies + validation
# ─────────────────────────────────────────────────────────────────

def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def validate_display_name(value: Any) -> str:
    """Return the trimmed display name or raise a 400."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail="Display name must be a string")
    trimmed = value.strip()
    if not DISPLAY_NAME_MIN <= len(trimmed) <= DISPLAY_NAME_MAX:
        raise HTTPException(
            status_code=400,
            detail=f"Display name must be {DISPLAY_NAME_MIN}-{DISPLAY_NAME_MAX} characters",
        )
    return trimmed


# ─────────────────────────────────────────────────────────────────
# Profiles
# ─────────────────────────────────────────────────────────────────

@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(payload: ProfileRequest, db: Session = Depends(get_db)):
    name = validate_display_name(payload.display_name)
    player = repository.create_player(db, name)
    logger.info("Profile created: %s (%s)", player.id, player.display_name)
    return ProfileResponse.from_row(player)


@router.get("/profiles/{player_id}", response_model=ProfileResponse)
def get_profile(player_id: str, db: Session = Depends(get_db)):
    player = repository.get_player(db, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse.from_row(player)


@router.put("/profiles/{player_id}", response_model=ProfileResponse)
def update_profile(player_id: str, payload: ProfileRequest, db: Session = Depends(get_db)):
    name = validate_display_name(payload.display_name)
    player = repository.update_player(db, player_id, name)
    if player is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse.from_row(player)


# ─────────────────────────────────────────────────────────────────
# Songs
# ─────────────────────────────────────────────────────────────────

@router.get("/songs", response_model=SongListResponse)
def list_songs(theme: Optional[str] = None, db: Session = Depends(get_db)):
    return SongListResponse.from_rows(repository.list_songs(db, theme))


@router.get("/songs/search", response_model=SongListResponse)
def search_songs(q: Optional[str] = None, db: Session = Depends(get_db)):
    if not q:
        raise HTTPException(status_code=400, detail="Search query is required")
    return SongListResponse.from_rows(repository.search_songs(db, q))


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.warning("Database check failed: %s", e)
        database = "unavailable"
    return {"status": "healthy", "database": database}


# ─────────────────────────────────────────────────────────────────
# App factory
# ─────────────────────────────────────────────────────────────────

async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    engine = engine or get_engine()
    init_db(engine)

    app = FastAPI(title="KaraokeVerse API")
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    from .config import API_HOST, API_PORT

    print("=" * 60)
    print("  KaraokeVerse API Server")
    print("=" * 60)
    uvicorn.run(create_app(), host=API_HOST, port=API_PORT, log_level="info")
