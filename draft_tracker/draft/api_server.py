"""
FastAPI server for a live draft session.

Exposes the session snapshot, scarcity, roster and recommendations, and
endpoints to refresh, enter panic mode, and manage the queue, plan and
pick clock. The session scheduler runs as an asyncio task on the server's
event loop; endpoints are async and share that loop.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .. import config
from .api_serializers import (
    ActionResponse,
    PlanEntryRequest,
    PlanGenerateRequest,
    PlanResponse,
    QueueAddRequest,
    QueueMoveRequest,
    QueueResponse,
    RecommendationsResponse,
    RosterResponse,
    ScarcityResponse,
    SessionStateResponse,
    TimerStartRequest,
    serialize_plan,
    serialize_player,
    serialize_queue,
    serialize_recommendations,
    serialize_roster,
    serialize_scarcity,
    serialize_state,
)
from .errors import InvalidConfiguration, TransientFetchError
from .session import DraftSession

logger = logging.getLogger(__name__)


async def run_scheduler(session: DraftSession) -> None:
    """Drive the session once per second until cancelled."""
    while True:
        try:
            session.advance()
        except Exception as e:
            logger.error(f"Error during scheduler step: {e}", exc_info=True)
            # Continue scheduling despite errors
        await asyncio.sleep(config.CLOCK_INTERVAL_SECONDS)


def create_app(session: DraftSession) -> FastAPI:
    """
    Build the API around an opened DraftSession.

    Syncing starts when the app's lifespan starts and stops when it ends.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session.start()
        task = asyncio.create_task(run_scheduler(session))
        logger.info("Draft scheduler started")
        try:
            yield
        finally:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            session.sync.stop()
            session.clear_clock()
            logger.info("Draft scheduler stopped")

    app = FastAPI(
        title="Sleeper Draft Tracker API",
        description="Live draft tracking and panic-mode recommendations",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware for web UI access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===== Read endpoints =====

    @app.get("/state", response_model=SessionStateResponse)
    async def get_state():
        return serialize_state(session.snapshot())

    @app.get("/scarcity", response_model=ScarcityResponse)
    async def get_scarcity():
        return serialize_scarcity(session.state_manager)

    @app.get("/roster", response_model=RosterResponse)
    async def get_roster():
        return serialize_roster(session.state_manager)

    @app.get("/recommendations", response_model=RecommendationsResponse)
    async def get_recommendations():
        return serialize_recommendations(session.recommendations())

    @app.get("/trending")
    async def get_trending():
        return {
            'players': [
                {'player': serialize_player(entry['player']), 'count': entry['count']}
                for entry in session.trending
            ]
        }

    # ===== Actions =====

    @app.post("/refresh", response_model=ActionResponse)
    async def refresh():
        """
        Raises:
            503 Service Unavailable: If the provider could not be reached
        """
        try:
            new_picks = session.refresh()
        except TransientFetchError as e:
            logger.warning(f"Manual refresh failed: {e}")
            raise HTTPException(status_code=503, detail=str(e))

        return ActionResponse(success=True, message=f"{new_picks} new pick(s)")

    @app.post("/panic", response_model=RecommendationsResponse)
    async def panic():
        """
        Raises:
            409 Conflict: If panic mode is already active
        """
        result = session.trigger_panic()
        if result is None:
            raise HTTPException(status_code=409, detail="Panic mode already active")
        return serialize_recommendations(result)

    @app.post("/panic/exit", response_model=ActionResponse)
    async def exit_panic():
        session.exit_panic()
        return ActionResponse(success=True, message="Panic mode exited")

    # ===== Queue =====

    @app.get("/queue", response_model=QueueResponse)
    async def get_queue():
        return serialize_queue(session.queue)

    @app.post("/queue", response_model=QueueResponse)
    async def add_to_queue(request: QueueAddRequest):
        """
        Raises:
            404 Not Found: Unknown player
            409 Conflict: Player already drafted
        """
        try:
            session.enqueue(request.player_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown player {request.player_id}")
        except ValueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return serialize_queue(session.queue)

    @app.delete("/queue/{player_id}", response_model=QueueResponse)
    async def remove_from_queue(player_id: str):
        if session.dequeue(player_id) is None:
            raise HTTPException(status_code=404, detail=f"Player {player_id} is not queued")
        return serialize_queue(session.queue)

    @app.post("/queue/{player_id}/move", response_model=QueueResponse)
    async def move_in_queue(player_id: str, request: QueueMoveRequest):
        if player_id not in session.queue:
            raise HTTPException(status_code=404, detail=f"Player {player_id} is not queued")
        session.move_in_queue(player_id, request.direction)
        return serialize_queue(session.queue)

    # ===== Plan =====

    @app.get("/plan", response_model=PlanResponse)
    async def get_plan():
        return serialize_plan(session.plan)

    @app.post("/plan/generate", response_model=PlanResponse)
    async def generate_plan(request: PlanGenerateRequest):
        """
        Raises:
            400 Bad Request: No draft position known or out of range
        """
        try:
            plan = session.generate_plan(request.draft_position)
        except InvalidConfiguration as e:
            raise HTTPException(status_code=400, detail=str(e))
        return serialize_plan(plan)

    @app.post("/plan/entries", response_model=PlanResponse)
    async def add_plan_entry(request: PlanEntryRequest):
        try:
            added = session.add_to_plan(request.round, request.player_id, backup=request.backup)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown player {request.player_id}")
        if not added:
            raise HTTPException(status_code=409, detail="Player already planned or round is full")
        return serialize_plan(session.plan)

    @app.delete("/plan/{player_id}", response_model=PlanResponse)
    async def remove_plan_entry(player_id: str):
        if not session.remove_from_plan(player_id):
            raise HTTPException(status_code=404, detail=f"Player {player_id} is not in the plan")
        return serialize_plan(session.plan)

    # ===== Pick clock =====

    @app.post("/timer/start", response_model=ActionResponse)
    async def start_timer(request: TimerStartRequest):
        session.start_clock(request.seconds)
        return ActionResponse(
            success=True,
            message=f"Pick clock started: {session.pick_clock.remaining}s",
        )

    @app.post("/timer/clear", response_model=ActionResponse)
    async def clear_timer():
        session.clear_clock()
        return ActionResponse(success=True, message="Pick clock cleared")

    return app
