from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from concierge.models.profile import Profile

DEFAULT_LOCALE = "en"

DISCOVERY_QUESTIONS: Dict[str, List[str]] = {
    "en": [
        "Where is the property you plan to finance? Let me know the city, state, or zip code.",
        "What timeline are you targeting for closing? Have you already signed a purchase contract?",
        "Which loan factors matter the most to you? For example: rate, loan-to-value, speed to close, or document requirements.",
    ],
    "zh": [
        "您计划融资的房产位于哪里？请告诉我城市、州或邮编。",
        "您预计什么时候完成交割？是否已经签署购房合同？",
        "哪些贷款因素对您最重要？例如：利率、贷款成数、放款速度或材料要求。",
    ],
}

# Answering the question at index i satisfies threshold i + 1. Thresholds are
# independent, so a turn that supplies a later field can jump the pointer past
# questions that were never asked.
QUESTION_FIELDS = ("location", "timeline", "priority")


@dataclass(frozen=True)
class Progress:
    pointer: int
    total: int
    recap_due: bool
    pending_question: Optional[str]

    @property
    def complete(self) -> bool:
        return self.pointer >= self.total


def get_questions(locale: str = DEFAULT_LOCALE) -> List[str]:
    return list(DISCOVERY_QUESTIONS.get(locale, DISCOVERY_QUESTIONS[DEFAULT_LOCALE]))


def question_pointer(profile: Profile, total: int) -> int:
    pointer = 0
    for index, field_name in enumerate(QUESTION_FIELDS):
        if getattr(profile, field_name) not in (None, ""):
            pointer = max(pointer, index + 1)
    return min(pointer, total)


def compute_pointer(profile: Profile, questions: Sequence[str], already_recapped: bool = False) -> Progress:
    total = len(questions)
    pointer = question_pointer(profile, total)
    return Progress(
        pointer=pointer,
        total=total,
        recap_due=pointer >= total and not already_recapped,
        pending_question=questions[pointer] if pointer < total else None,
    )
