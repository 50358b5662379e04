"""Instruction payloads for the phrasing model and the deterministic replies used without it."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from concierge.models.chat import InstructionPayload
from concierge.models.profile import Profile
from concierge.services.priority import priority_label

_COPY: Dict[str, Dict[str, str]] = {
    "en": {
        "persona": "You are an elite mortgage concierge for borrowers in the United States.",
        "mission": (
            "Your job is to maintain a concise, forward-looking conversation, capture lending requirements, "
            "and prepare borrowers for broker hand-off."
        ),
        "tone": "Use a professional yet encouraging tone. Keep replies under 110 words.",
        "profile": "Current borrower profile: {fragments}.",
        "no_profile": "No borrower profile captured yet.",
        "ask": "You must ask the following question next to continue onboarding: {question}",
        "complete": (
            "All required discovery questions have been captured. Provide a recap and invite the borrower to "
            "review the recommended matches below, highlighting that they can refresh if needed."
        ),
        "recap": "Deliver a crisp recap before closing your message. Mention that recommendations on the page are now updated.",
        "acknowledge": "Acknowledge the latest borrower input before asking the next required question.",
        "location": "Location",
        "amount": "Target loan",
        "credit": "Credit score",
        "priority": "Priority",
        "timeline": "Timeline",
        "recap_intro": "Here is your current deal profile - {parts}.",
        "recap_empty": "I captured that. Keep sharing the details that matter and I'll refine the matches.",
        "separator": " / ",
        "fragment_separator": " | ",
        "trailer": "Review the three highlighted loan scenarios below and let me know which one aligns best.",
        "preamble": "Thanks for sharing!",
        "acknowledged": "Thanks for the update. Your borrower file is refreshed and synced with the recommendation engine.",
        "clarify": "What should we clarify next?",
    },
    "zh": {
        "persona": "您是一位服务美国购房者的资深房贷顾问。",
        "mission": "您的任务是保持简洁、前瞻的对话，收集贷款需求，并为对接经纪人做好准备。",
        "tone": "语气专业而积极，回复控制在 150 字以内。",
        "profile": "当前借款人档案：{fragments}。",
        "no_profile": "尚未收集到借款人信息。",
        "ask": "接下来必须原样提出以下问题以继续了解需求：{question}",
        "complete": "所有必需的问题都已收集完毕。请做一个总结，并邀请借款人查看下方的推荐方案，提醒他们可以刷新推荐。",
        "recap": "在回复结尾前给出简明总结，并说明页面上的推荐已更新。",
        "acknowledge": "先确认借款人最新提供的信息，再提出下一个必需的问题。",
        "location": "地点",
        "amount": "目标贷款",
        "credit": "信用分",
        "priority": "优先事项",
        "timeline": "时间线",
        "recap_intro": "这是您当前的贷款档案：{parts}。",
        "recap_empty": "已记录。请继续分享重要细节，我会持续优化匹配结果。",
        "separator": "；",
        "fragment_separator": "；",
        "trailer": "请查看下方推荐的三个贷款方案，告诉我哪一个最符合您的需求。",
        "preamble": "感谢分享！",
        "acknowledged": "感谢更新，您的借款档案已同步到推荐引擎。",
        "clarify": "接下来我们还需要确认哪些信息？",
    },
}


def _copy(locale: str) -> Dict[str, str]:
    return _COPY.get(locale, _COPY["en"])


def format_currency(amount: float, locale: str = "en") -> str:
    if locale == "zh":
        return f"{amount:,.0f} 美元"
    return f"${amount:,.0f}"


def profile_fragments(profile: Profile, locale: str = "en") -> List[str]:
    """Render populated fields as ``label: value`` fragments in display order."""
    copy = _copy(locale)
    colon = "：" if locale == "zh" else ": "
    fragments = []
    if profile.location:
        fragments.append(f"{copy['location']}{colon}{profile.location}")
    if profile.amount is not None:
        fragments.append(f"{copy['amount']}{colon}{format_currency(profile.amount, locale)}")
    if profile.credit:
        fragments.append(f"{copy['credit']}{colon}{profile.credit}")
    if profile.priority:
        fragments.append(f"{copy['priority']}{colon}{priority_label(profile.priority, locale)}")
    if profile.timeline:
        fragments.append(f"{copy['timeline']}{colon}{profile.timeline}")
    return fragments


def build_recap(profile: Profile, locale: str = "en") -> str:
    copy = _copy(locale)
    parts = profile_fragments(profile, locale)
    if not parts:
        return copy["recap_empty"]
    return copy["recap_intro"].format(parts=copy["separator"].join(parts))


def _pending_question(pointer: int, questions: Sequence[str]) -> Optional[str]:
    if 0 <= pointer < len(questions):
        return questions[pointer]
    return None


def build_instruction(
    profile: Profile,
    pointer: int,
    recap_due: bool,
    locale: str,
    questions: Sequence[str],
) -> InstructionPayload:
    copy = _copy(locale)
    pending = _pending_question(pointer, questions)
    fragments = profile_fragments(profile, locale)

    directives = [
        copy["persona"],
        copy["mission"],
        copy["tone"],
        copy["profile"].format(fragments=copy["fragment_separator"].join(fragments)) if fragments else copy["no_profile"],
        copy["ask"].format(question=pending) if pending else copy["complete"],
        copy["recap"] if recap_due else copy["acknowledge"],
    ]
    return InstructionPayload(
        locale=locale if locale in _COPY else "en",
        directives=directives,
        pending_question=pending,
        recap_due=recap_due,
    )


def build_fallback(
    profile: Profile,
    pointer: int,
    recap_due: bool,
    locale: str,
    questions: Sequence[str],
) -> str:
    copy = _copy(locale)
    if recap_due:
        return f"{build_recap(profile, locale)} {copy['trailer']}"
    pending = _pending_question(pointer, questions)
    if pending:
        return f"{copy['preamble']} {pending}"
    # Recap already delivered earlier in this session.
    return f"{copy['acknowledged']} {copy['clarify']}"
