from __future__ import annotations

import os
from typing import Dict, List, Optional, Sequence

import logging
from openai import AsyncOpenAI

from concierge.models.chat import ChatMessage, InstructionPayload

logger = logging.getLogger(__name__)

_ROLE_BY_AUTHOR = {
    "ai": "assistant",
    "user": "user",
    "system": "system",
}


class PhrasingClient:
    """Asks the chat-completions model to phrase the next concierge turn.

    ``phrase`` returns ``None`` whenever no usable text comes back (no API key,
    transport error, timeout or an empty completion); the caller substitutes the
    deterministic fallback.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: float = 0.5,
        max_tokens: int = 600,
    ) -> None:
        self.model = model or os.getenv("PHRASING_MODEL", "gpt-4o-mini")
        self.timeout = timeout if timeout is not None else float(os.getenv("PHRASING_TIMEOUT_SECONDS", "15"))
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: Optional[AsyncOpenAI] = None
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=self.timeout, max_retries=1)

    def is_available(self) -> bool:
        return self._client is not None

    def build_messages(self, instruction: InstructionPayload, history: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": instruction.as_system_prompt()}]
        for message in history:
            messages.append({"role": _ROLE_BY_AUTHOR.get(message.author, "system"), "content": message.content})
        return messages

    async def phrase(self, instruction: InstructionPayload, history: Sequence[ChatMessage]) -> Optional[str]:
        if not self._client:
            logger.info("phrasing.disabled reason=no_api_key")
            return None

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(instruction, history),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("phrasing.error %s", exc)
            return None

        if not response.choices:
            logger.info("phrasing.no_choices")
            return None

        text = (response.choices[0].message.content or "").strip()
        if not text:
            logger.info("phrasing.empty_completion")
            return None
        return text
