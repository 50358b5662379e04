from __future__ import annotations

import re
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import logging
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Pipeline order of a chat turn followed by a recommendation request.
_STAGE_ORDER = [
    "SESSION",
    "INTAKE",
    "PROGRESS",
    "PROMPT",
    "PHRASING",
    "FILTER",
    "RANK",
]

_MASK = "***"


@dataclass
class StageEvent:
    stage: str
    message: str
    elapsed_ms: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class FlightRecorder:
    """Per-request timeline of concierge stages with personal fields masked."""

    def __init__(self) -> None:
        self.events: List[StageEvent] = []
        self.start_time = time.perf_counter()

    def _since_start_ms(self) -> float:
        return round((time.perf_counter() - self.start_time) * 1000, 2)

    def _record(self, stage: str, message: str, elapsed_ms: float, metadata: Dict[str, Any]) -> Dict[str, Any]:
        if stage not in _STAGE_ORDER:
            logger.warning("flight_recorder.unknown_stage stage=%s", stage)
        redacted = _redact(metadata)
        self.events.append(
            StageEvent(
                stage=stage,
                message=message,
                elapsed_ms=elapsed_ms,
                metadata={"total_ms": self._since_start_ms(), **redacted},
            )
        )
        return redacted

    @contextmanager
    def stage(self, stage: str, **metadata: Any) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            redacted = self._record(stage, f"{stage} completed", elapsed_ms, metadata)
            logger.info("flight_recorder.stage stage=%s elapsed_ms=%.2f metadata=%s", stage, elapsed_ms, redacted)

    def log(self, stage: str, message: str, **metadata: Any) -> None:
        redacted = self._record(stage, message, 0.0, metadata)
        logger.info("flight_recorder.log stage=%s message=%s metadata=%s", stage, message, redacted)

    def messages(self, stage: Optional[str] = None) -> List[str]:
        return [event.message for event in self.events if stage is None or event.stage == stage]

    def stage_totals(self) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for event in self.events:
            totals[event.stage] = round(totals.get(event.stage, 0.0) + event.elapsed_ms, 2)
        return totals


def mask_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    parts = name.split()
    if not parts:
        return _MASK
    return " ".join(f"{part[0]}{_MASK}" for part in parts)


def mask_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    local, _, domain = email.partition("@")
    if not domain:
        return _MASK
    if not local:
        return f"{_MASK}@{domain}"
    return f"{local[0]}{_MASK}@{domain}"


def mask_phone(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return None
    return re.sub(r"\d", "*", phone)


_MASKERS = {
    "name": mask_name,
    "email": mask_email,
    "phone": mask_phone,
}


def _redact(payload: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for key, value in payload.items():
        masker = _MASKERS.get(key)
        if masker and value:
            redacted[key] = masker(str(value))
        else:
            redacted[key] = value
    return redacted


class FlightRecorderMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        recorder = FlightRecorder()
        request.state.flight_recorder = recorder
        response = await call_next(request)
        if recorder.events:
            logger.info(
                "flight_recorder.request path=%s status=%d total_ms=%.2f stages=%s",
                request.url.path,
                response.status_code,
                recorder._since_start_ms(),
                recorder.stage_totals(),
            )
        return response


def register_log_middleware(app: FastAPI) -> None:
    app.add_middleware(FlightRecorderMiddleware)


def get_recorder(request: Request) -> FlightRecorder:
    recorder = getattr(request.state, "flight_recorder", None)
    if recorder is None:
        recorder = FlightRecorder()
        request.state.flight_recorder = recorder
    return recorder
