"""Category picks plus fillers, rotated by a caller-supplied variant.

Each fixed category sorts the whole filtered pool with its own comparator, then
walks it from a rotation offset derived from ``variant`` and the category index,
taking the first eligible broker not already picked in this request. Remaining
slots are filled with ``additional`` picks the same way. The same inputs always
give the same output; different variants surface different brokers.
"""

from __future__ import annotations

import os
import re
from typing import Callable, List, Optional, Sequence, Set, Tuple

import logging

from concierge.logging.flight_recorder import FlightRecorder
from concierge.models.brokers import BrokerCandidate, BrokerProjection, Recommendation

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 3

FAST_NOTE_DAYS = 45
DEFAULT_CLOSING_DAYS = 120

_FAST_NOTES = re.compile(r"fast|quick|expedit|rapid|rush|快|加急", re.I)

SortKey = Callable[[BrokerCandidate], Tuple]
Eligibility = Callable[[BrokerCandidate], bool]


def closing_score(candidate: BrokerCandidate) -> int:
    if candidate.closing_speed_days is not None:
        return candidate.closing_speed_days
    if candidate.notes and _FAST_NOTES.search(candidate.notes):
        return FAST_NOTE_DAYS
    return DEFAULT_CLOSING_DAYS


def _headline_rate(candidate: BrokerCandidate) -> Optional[float]:
    return candidate.min_rate if candidate.min_rate is not None else candidate.max_rate


def _rate_key(candidate: BrokerCandidate) -> Tuple:
    rate = _headline_rate(candidate)
    return (rate is None, rate or 0.0, candidate.id)


def _ltv_key(candidate: BrokerCandidate) -> Tuple:
    ltv = candidate.max_loan_to_value
    return (ltv is None, -(ltv or 0), candidate.id)


def _closing_key(candidate: BrokerCandidate) -> Tuple:
    return (closing_score(candidate), candidate.id)


def _filler_key(candidate: BrokerCandidate) -> Tuple:
    rate = candidate.min_rate
    ltv = candidate.max_loan_to_value
    return (rate is None, rate or 0.0, ltv is None, -(ltv or 0), candidate.id)


def _has_rate(candidate: BrokerCandidate) -> bool:
    return _headline_rate(candidate) is not None


def _has_ltv(candidate: BrokerCandidate) -> bool:
    return candidate.max_loan_to_value is not None


def _any(candidate: BrokerCandidate) -> bool:
    return True


CATEGORY_PASSES: Tuple[Tuple[str, SortKey, Eligibility], ...] = (
    ("lowestRate", _rate_key, _has_rate),
    ("highestLtv", _ltv_key, _has_ltv),
    ("fastestClosing", _closing_key, _any),
)

FILLER_CATEGORY = "additional"


class RecommendationSelector:
    def __init__(
        self,
        rotate: bool = True,
        variant_prime: int = 7,
        category_prime: int = 13,
        limit: int = MAX_RECOMMENDATIONS,
    ) -> None:
        self.rotate = rotate
        self.variant_prime = variant_prime
        self.category_prime = category_prime
        self.limit = limit

    def rotation_offset(self, variant: int, index: int, length: int) -> int:
        if not self.rotate or length <= 0:
            return 0
        # Python's modulo is already non-negative for a positive length.
        return (variant * self.variant_prime + index * self.category_prime) % length

    def select(
        self,
        pool: Sequence[BrokerCandidate],
        variant: int = 0,
        recorder: Optional[FlightRecorder] = None,
    ) -> List[Recommendation]:
        candidates = list(pool)
        picks: List[Recommendation] = []
        used: Set[str] = set()
        if not candidates:
            return picks

        for index, (category, sort_key, eligible) in enumerate(CATEGORY_PASSES):
            if len(picks) >= self.limit:
                break
            ordered = sorted(candidates, key=sort_key)
            choice = self._walk(ordered, self.rotation_offset(variant, index, len(ordered)), used, eligible)
            if choice is None:
                logger.info("ranking.category_empty category=%s pool=%d", category, len(candidates))
                continue
            picks.append(Recommendation(category=category, broker=BrokerProjection.from_candidate(choice)))

        fillers = sorted(candidates, key=_filler_key)
        fill_index = 0
        while len(picks) < self.limit:
            offset = self.rotation_offset(variant, len(CATEGORY_PASSES) + fill_index, len(fillers))
            choice = self._walk(fillers, offset, used, _any)
            if choice is None:
                break
            picks.append(Recommendation(category=FILLER_CATEGORY, broker=BrokerProjection.from_candidate(choice)))
            fill_index += 1

        if recorder:
            recorder.log(
                "RANK",
                "recommendations_selected",
                variant=variant,
                pool=len(candidates),
                picks=[f"{pick.category}:{pick.broker.id}" for pick in picks],
            )
        return picks

    @staticmethod
    def _walk(
        ordered: Sequence[BrokerCandidate],
        offset: int,
        used: Set[str],
        eligible: Eligibility,
    ) -> Optional[BrokerCandidate]:
        length = len(ordered)
        for step in range(length):
            candidate = ordered[(offset + step) % length]
            if candidate.id in used or not eligible(candidate):
                continue
            used.add(candidate.id)
            return candidate
        return None


def _rotation_enabled() -> bool:
    return os.getenv("CONCIERGE_ROTATE_RECOMMENDATIONS", "1").lower() not in {"0", "false", "no", "off"}


_default_selector = RecommendationSelector(rotate=_rotation_enabled())


def select_recommendations(
    pool: Sequence[BrokerCandidate],
    variant: int = 0,
    recorder: Optional[FlightRecorder] = None,
) -> List[Recommendation]:
    return _default_selector.select(pool, variant, recorder)
