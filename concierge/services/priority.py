from __future__ import annotations

import re
from typing import List, Optional, Tuple

# Evaluated in order; the first matching group wins.
_PRIORITY_GROUPS: List[Tuple[str, re.Pattern]] = [
    (
        "rate",
        re.compile(r"\b(?:interest|rates?|apr|pricing)\b|利率|利息|低息", re.I),
    ),
    (
        "ltv",
        re.compile(
            r"\b(?:ltv|loan[- ]to[- ]value|max(?:imum)? leverage|high leverage|loan amount)\b|成数|杠杆|贷款额度",
            re.I,
        ),
    ),
    (
        "speed",
        re.compile(
            r"\b(?:speed|fast(?:est)? clos\w*|quick(?:ly)? clos\w*|timeline|weeks|days|asap)\b|放款快|尽快|速度|快速",
            re.I,
        ),
    ),
    (
        "documents",
        re.compile(
            r"\b(?:docs?|documents?|documentation|paperwork|minimal|no[- ]doc|low[- ]doc)\b|材料|文件|手续",
            re.I,
        ),
    ),
]

_LABELS = {
    "en": {
        "rate": "Locking the lowest rate",
        "ltv": "Maximising leverage",
        "speed": "Fastest time-to-close",
        "documents": "Streamlined documentation",
    },
    "zh": {
        "rate": "锁定最低利率",
        "ltv": "最大化贷款成数",
        "speed": "最快放款",
        "documents": "简化材料",
    },
}

_DEFAULT_LABEL = {"en": "Balanced factors", "zh": "综合考虑"}


def classify_priority(text: str) -> Optional[str]:
    if not text:
        return None
    for key, pattern in _PRIORITY_GROUPS:
        if pattern.search(text):
            return key
    return None


def priority_label(key: Optional[str], locale: str = "en") -> str:
    labels = _LABELS.get(locale, _LABELS["en"])
    if key in labels:
        return labels[key]
    return _DEFAULT_LABEL.get(locale, _DEFAULT_LABEL["en"])
