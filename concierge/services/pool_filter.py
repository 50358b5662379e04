from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

import logging

from concierge.logging.flight_recorder import FlightRecorder
from concierge.models.brokers import BrokerCandidate
from concierge.models.profile import Profile
from concierge.services.regions import extract_region

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\d+")


@dataclass
class FilteredPool:
    candidates: List[BrokerCandidate]
    source_size: int
    region: Optional[str] = None
    credit_score: Optional[int] = None
    region_relaxed: bool = False
    credit_relaxed: bool = False

    def __len__(self) -> int:
        return len(self.candidates)


def parse_credit_score(credit: Optional[str]) -> Optional[int]:
    if not credit:
        return None
    match = _LEADING_INT.search(str(credit))
    return int(match.group(0)) if match else None


def filter_pool(
    pool: Sequence[BrokerCandidate],
    profile: Profile,
    recorder: Optional[FlightRecorder] = None,
) -> FilteredPool:
    """Narrow the pool by license region, then credit floor, relaxing any step that empties it."""
    candidates = list(pool)
    region = extract_region(profile.location)
    credit_score = parse_credit_score(profile.credit)
    result = FilteredPool(candidates=candidates, source_size=len(candidates), region=region, credit_score=credit_score)

    if region:
        licensed = [c for c in candidates if c.license_states and region in c.license_states]
        if licensed:
            result.candidates = licensed
        elif candidates:
            result.region_relaxed = True
            logger.info("pool_filter.region_relaxed region=%s pool=%d", region, len(candidates))

    if credit_score is not None:
        qualified = [
            c for c in result.candidates if c.min_credit_score is None or c.min_credit_score <= credit_score
        ]
        if qualified:
            result.candidates = qualified
        elif result.candidates:
            result.credit_relaxed = True
            logger.info("pool_filter.credit_relaxed credit=%d pool=%d", credit_score, len(result.candidates))

    if recorder:
        recorder.log(
            "FILTER",
            "pool_filtered",
            source=result.source_size,
            eligible=len(result.candidates),
            region=region,
            region_relaxed=result.region_relaxed,
            credit_relaxed=result.credit_relaxed,
        )
    return result
