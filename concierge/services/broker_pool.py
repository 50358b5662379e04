from __future__ import annotations

from functools import lru_cache
from typing import List

import logging
from pydantic import ValidationError

from concierge.models.brokers import BrokerCandidate
from concierge.utils.fixture_loader import load_brokers

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_broker_pool() -> List[BrokerCandidate]:
    """Active brokers from the fixture; withdrawn or disabled records are excluded."""
    brokers: List[BrokerCandidate] = []
    for raw in load_brokers():
        try:
            broker = BrokerCandidate.model_validate(raw)
        except ValidationError as exc:
            logger.warning("broker_pool.invalid_record id=%s errors=%s", raw.get("id"), exc.errors())
            continue
        if not broker.active:
            continue
        brokers.append(broker)
    logger.info("broker_pool.loaded count=%d", len(brokers))
    return brokers
