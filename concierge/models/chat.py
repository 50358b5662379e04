from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from concierge.models.profile import ManualProfileForm, Profile

Locale = Literal["en", "zh"]
MessageAuthor = Literal["ai", "user", "system"]


class ChatMessage(BaseModel):
    id: str
    author: MessageAuthor
    content: str
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class InstructionPayload(BaseModel):
    locale: Locale = "en"
    directives: List[str]
    pending_question: Optional[str] = None
    recap_due: bool = False

    def as_system_prompt(self) -> str:
        return " ".join(self.directives)


class ChatTurnRequest(BaseModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    message: str = Field(..., min_length=1)
    locale: Locale = "en"

    model_config = ConfigDict(populate_by_name=True)


class ChatTurnResponse(BaseModel):
    message: str
    session_id: str = Field(alias="sessionId")
    summary: Profile
    pointer: int
    recap_due: bool = Field(alias="recapDue")
    refresh_key: int = Field(alias="refreshKey")
    fallback: bool = False

    model_config = ConfigDict(populate_by_name=True)


class SessionSnapshot(BaseModel):
    session_id: str = Field(alias="sessionId")
    summary: Optional[Profile] = None
    pointer: int = 0
    refresh_key: int = Field(default=0, alias="refreshKey")
    messages: List[ChatMessage] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class SessionActionRequest(BaseModel):
    action: Literal["reset"]
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class ManualProfileRequest(BaseModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    profile: ManualProfileForm
    locale: Locale = "en"

    model_config = ConfigDict(populate_by_name=True)
