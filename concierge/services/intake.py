from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import logging

from concierge.logging.flight_recorder import FlightRecorder
from concierge.models.profile import ManualProfileForm, Profile
from concierge.services import session_store
from concierge.services.extraction import FieldExtractor, RegexFieldExtractor
from concierge.services.phrasing import PhrasingClient
from concierge.services.progress import Progress, compute_pointer, get_questions
from concierge.services.prompting import build_fallback, build_instruction
from concierge.services.session_store import IntakeSession

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    reply: str
    session: IntakeSession
    progress: Progress
    extracted: Profile
    used_fallback: bool


class IntakeAgent:
    def __init__(
        self,
        phrasing: PhrasingClient,
        recorder: Optional[FlightRecorder] = None,
        extractor: Optional[FieldExtractor] = None,
        history_turns: Optional[int] = None,
    ) -> None:
        self.phrasing = phrasing
        self.recorder = recorder or FlightRecorder()
        self.extractor = extractor or RegexFieldExtractor()
        self.history_turns = history_turns or int(os.getenv("PHRASING_HISTORY_TURNS", "12"))

    async def process_turn(self, session: IntakeSession, text: str, locale: str = "en") -> TurnResult:
        logger.info("intake.turn session=%s chars=%d locale=%s", session.id, len(text), locale)
        questions = get_questions(locale)

        with self.recorder.stage("INTAKE", session_id=session.id):
            extracted = self.extractor.extract(text)
        merged = session.profile.merge(extracted)

        with self.recorder.stage("PROGRESS", session_id=session.id):
            progress = compute_pointer(merged, questions, already_recapped=session.has_recapped)

        if progress.recap_due:
            session.refresh_key += 1
            self.recorder.log("PROGRESS", "recap_due", session_id=session.id, refresh_key=session.refresh_key)
        session.has_recapped = session.has_recapped or progress.complete
        session.profile = merged
        session.locale = locale

        logger.info(
            "intake.progress session=%s extracted=%s pointer=%d/%d recap_due=%s",
            session.id,
            extracted.present_fields(),
            progress.pointer,
            progress.total,
            progress.recap_due,
        )

        session_store.append_message(session, "user", text)

        with self.recorder.stage("PROMPT", session_id=session.id):
            instruction = build_instruction(merged, progress.pointer, progress.recap_due, locale, questions)

        history = session_store.recent_messages(session, self.history_turns)
        with self.recorder.stage("PHRASING", session_id=session.id):
            reply = await self.phrasing.phrase(instruction, history)

        used_fallback = not reply
        if used_fallback:
            reply = build_fallback(merged, progress.pointer, progress.recap_due, locale, questions)
            self.recorder.log("PHRASING", "fallback_used", session_id=session.id)

        session_store.append_message(session, "ai", reply)
        return TurnResult(
            reply=reply,
            session=session,
            progress=progress,
            extracted=extracted,
            used_fallback=used_fallback,
        )

    def save_manual_profile(self, session: IntakeSession, form: ManualProfileForm, locale: str = "en") -> Progress:
        """Merge a manually entered profile; it counts as a delivered recap and refreshes matches."""
        with self.recorder.stage("INTAKE", session_id=session.id, name=form.name):
            session.profile = session.profile.merge(form.to_profile())
        session.has_recapped = True
        session.refresh_key += 1
        session.locale = locale
        logger.info("intake.manual_profile session=%s fields=%s", session.id, session.profile.present_fields())
        return compute_pointer(session.profile, get_questions(locale), already_recapped=True)
