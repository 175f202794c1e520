"""
API serializers for the draft session endpoints.

Transforms internal session structures into pydantic response models.
"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..catalog import Player
from .draft_state_manager import DraftStateManager
from .pick_queue import PickQueue
from .plan_builder import DraftPlan
from .recommendation_engine import RecommendationSet


# ========== Players ==========

class PlayerResponse(BaseModel):
    """Player as shown in queue, plan and recommendation responses."""
    player_id: str
    name: str
    position: str
    team: Optional[str] = None
    adp: float = Field(description="Format-adjusted average draft position")
    tier: str
    risk_level: str
    injury_status: Optional[str] = None
    rookie: bool = False


def serialize_player(player: Player) -> PlayerResponse:
    return PlayerResponse(
        player_id=player.player_id,
        name=player.name,
        position=player.position.value,
        team=player.team,
        adp=player.adp,
        tier=player.tier.value,
        risk_level=player.risk_level.value,
        injury_status=player.injury_status,
        rookie=player.rookie,
    )


# ========== Session State ==========

class SessionStateResponse(BaseModel):
    """Response for GET /state."""
    updated_at: str = Field(description="ISO-8601 timestamp")
    draft_id: str
    status: str
    draft_type: str
    team_count: int
    rounds: int
    pick_count: int
    current_round: int
    overall_pick: int
    scoring_format: str
    is_user_turn: bool
    turn_is_estimated: bool
    tracked_roster_id: Optional[int] = None
    current_picker: Optional[int] = None
    using_demo_data: bool
    roster_is_estimated: bool
    panic_active: bool
    clock_remaining: Optional[int] = Field(None, description="Seconds left on the pick clock")
    queue_length: int


def serialize_state(snapshot: Dict) -> SessionStateResponse:
    return SessionStateResponse(
        updated_at=datetime.now().isoformat(),
        **{k: v for k, v in snapshot.items() if k in SessionStateResponse.model_fields},
    )


# ========== Scarcity / Roster ==========

class PositionScarcityResponse(BaseModel):
    position: str
    starters_estimate: int
    drafted_count: int
    remaining: int
    level: str


class ScarcityResponse(BaseModel):
    """Response for GET /scarcity."""
    updated_at: str = Field(description="ISO-8601 timestamp")
    positions: List[PositionScarcityResponse]


def serialize_scarcity(state_manager: DraftStateManager) -> ScarcityResponse:
    return ScarcityResponse(
        updated_at=datetime.now().isoformat(),
        positions=[
            PositionScarcityResponse(position=position, **entry.to_dict())
            for position, entry in state_manager.position_scarcity.items()
        ],
    )


class RosterResponse(BaseModel):
    """Response for GET /roster."""
    counts: Dict[str, int] = Field(description="Tracked roster counts by position")
    is_estimated: bool = Field(description="True when derived from the round, not real picks")
    uncounted: int = Field(description="Picks whose position could not be resolved")


def serialize_roster(state_manager: DraftStateManager) -> RosterResponse:
    return RosterResponse(**state_manager.roster_composition().to_dict())


# ========== Recommendations ==========

class RecommendationResponse(BaseModel):
    player: PlayerResponse
    strategy: str
    confidence: int = Field(ge=10, le=95)
    reason: str


class RecommendationsResponse(BaseModel):
    """Response for GET /recommendations and POST /panic."""
    updated_at: str = Field(description="ISO-8601 timestamp")
    current_round: int
    overall_pick: int
    using_demo_data: bool
    roster_is_estimated: bool
    turn_is_estimated: bool
    recommendations: List[RecommendationResponse]


def serialize_recommendations(result: RecommendationSet) -> RecommendationsResponse:
    return RecommendationsResponse(
        updated_at=datetime.now().isoformat(),
        current_round=result.current_round,
        overall_pick=result.overall_pick,
        using_demo_data=result.using_demo_data,
        roster_is_estimated=result.roster_is_estimated,
        turn_is_estimated=result.turn_is_estimated,
        recommendations=[
            RecommendationResponse(
                player=serialize_player(r.player),
                strategy=r.strategy.value,
                confidence=r.confidence,
                reason=r.reason,
            )
            for r in result
        ],
    )


# ========== Queue / Plan ==========

class QueueResponse(BaseModel):
    """Response for queue endpoints."""
    players: List[PlayerResponse]


def serialize_queue(queue: PickQueue) -> QueueResponse:
    return QueueResponse(players=[serialize_player(p) for p in queue])


class PlanRoundResponse(BaseModel):
    round: int
    targets: List[PlayerResponse]
    backups: List[PlayerResponse]


class PlanResponse(BaseModel):
    """Response for plan endpoints."""
    rounds: List[PlanRoundResponse]


def serialize_plan(plan: DraftPlan) -> PlanResponse:
    return PlanResponse(rounds=[
        PlanRoundResponse(
            round=round_number,
            targets=[serialize_player(p) for p in plan_round.targets],
            backups=[serialize_player(p) for p in plan_round.backups],
        )
        for round_number, plan_round in sorted(plan.rounds.items())
    ])


# ========== Requests ==========

class QueueAddRequest(BaseModel):
    player_id: str


class QueueMoveRequest(BaseModel):
    direction: str = Field(..., pattern='^(up|down)$', description="'up' or 'down'")


class PlanGenerateRequest(BaseModel):
    draft_position: Optional[int] = Field(None, ge=1, le=32, description="Defaults to the configured slot")


class PlanEntryRequest(BaseModel):
    round: int = Field(..., ge=1, le=15)
    player_id: str
    backup: bool = False


class TimerStartRequest(BaseModel):
    seconds: Optional[int] = Field(None, gt=0, description="Defaults to the draft's pick timer")


class ActionResponse(BaseModel):
    success: bool
    message: str
