from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from concierge.logging.flight_recorder import FlightRecorder, get_recorder
from concierge.models.brokers import BrokerCandidate, RecommendationRequest, RecommendationResponse
from concierge.services.broker_pool import get_broker_pool
from concierge.services.recommendations import recommend_brokers

router = APIRouter()


@router.post("", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest,
    recorder: FlightRecorder = Depends(get_recorder),
    pool: List[BrokerCandidate] = Depends(get_broker_pool),
) -> RecommendationResponse:
    return recommend_brokers(body.summary, body.variant, pool, recorder)
