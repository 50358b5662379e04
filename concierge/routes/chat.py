from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query

from concierge.logging.flight_recorder import FlightRecorder, get_recorder
from concierge.models.chat import (
    ChatTurnRequest,
    ChatTurnResponse,
    ManualProfileRequest,
    SessionActionRequest,
    SessionSnapshot,
)
from concierge.services import session_store
from concierge.services.intake import IntakeAgent
from concierge.services.phrasing import PhrasingClient
from concierge.services.progress import get_questions, question_pointer
from concierge.services.session_store import IntakeSession

router = APIRouter()


@lru_cache(maxsize=1)
def get_phrasing_client() -> PhrasingClient:
    return PhrasingClient()


def _snapshot(session: IntakeSession) -> SessionSnapshot:
    total = len(get_questions(session.locale))
    return SessionSnapshot(
        session_id=session.id,
        summary=None if session.profile.is_empty() else session.profile,
        pointer=question_pointer(session.profile, total),
        refresh_key=session.refresh_key,
        messages=list(session.messages),
    )


@router.post("", response_model=ChatTurnResponse)
async def chat_turn(
    body: ChatTurnRequest,
    recorder: FlightRecorder = Depends(get_recorder),
    phrasing: PhrasingClient = Depends(get_phrasing_client),
) -> ChatTurnResponse:
    with recorder.stage("SESSION"):
        session = session_store.get_or_create_session(body.session_id)
    agent = IntakeAgent(phrasing, recorder)
    result = await agent.process_turn(session, body.message.strip(), body.locale)
    return ChatTurnResponse(
        message=result.reply,
        session_id=session.id,
        summary=session.profile,
        pointer=result.progress.pointer,
        recap_due=result.progress.recap_due,
        refresh_key=session.refresh_key,
        fallback=result.used_fallback,
    )


@router.get("/session", response_model=SessionSnapshot)
async def get_chat_session(session_id: Optional[str] = Query(default=None, alias="sessionId")) -> SessionSnapshot:
    session = session_store.get_or_create_session(session_id)
    return _snapshot(session)


@router.post("/session", response_model=SessionSnapshot)
async def reset_chat_session(body: SessionActionRequest, recorder: FlightRecorder = Depends(get_recorder)) -> SessionSnapshot:
    session = session_store.reset_session(body.session_id)
    recorder.log("SESSION", "session_reset", previous=body.session_id, session_id=session.id)
    return _snapshot(session)


@router.post("/profile", response_model=SessionSnapshot)
async def save_manual_profile(
    body: ManualProfileRequest,
    recorder: FlightRecorder = Depends(get_recorder),
    phrasing: PhrasingClient = Depends(get_phrasing_client),
) -> SessionSnapshot:
    session = session_store.get_or_create_session(body.session_id)
    IntakeAgent(phrasing, recorder).save_manual_profile(session, body.profile, body.locale)
    return _snapshot(session)
