from __future__ import annotations

from contextlib import nullcontext
from typing import Optional, Sequence

from concierge.logging.flight_recorder import FlightRecorder
from concierge.models.brokers import BrokerCandidate, RecommendationResponse
from concierge.models.profile import Profile
from concierge.services.pool_filter import filter_pool
from concierge.services.ranking import RecommendationSelector, select_recommendations


def recommend_brokers(
    profile: Profile,
    variant: int,
    pool: Sequence[BrokerCandidate],
    recorder: Optional[FlightRecorder] = None,
    selector: Optional[RecommendationSelector] = None,
) -> RecommendationResponse:
    with recorder.stage("FILTER", pool=len(pool)) if recorder else nullcontext():
        filtered = filter_pool(pool, profile, recorder)

    with recorder.stage("RANK", variant=variant) if recorder else nullcontext():
        if selector is not None:
            picks = selector.select(filtered.candidates, variant, recorder)
        else:
            picks = select_recommendations(filtered.candidates, variant, recorder)

    return RecommendationResponse(
        recommendations=picks,
        total=filtered.source_size,
        eligible=len(filtered.candidates),
        region=filtered.region,
        region_relaxed=filtered.region_relaxed,
        credit_relaxed=filtered.credit_relaxed,
    )
