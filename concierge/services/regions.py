from __future__ import annotations

import re
from typing import Dict, Optional

_STATE_NAMES: Dict[str, str] = {
    "alabama": "AL",
    "alaska": "AK",
    "arizona": "AZ",
    "arkansas": "AR",
    "california": "CA",
    "colorado": "CO",
    "connecticut": "CT",
    "delaware": "DE",
    "district of columbia": "DC",
    "florida": "FL",
    "georgia": "GA",
    "hawaii": "HI",
    "idaho": "ID",
    "illinois": "IL",
    "indiana": "IN",
    "iowa": "IA",
    "kansas": "KS",
    "kentucky": "KY",
    "louisiana": "LA",
    "maine": "ME",
    "maryland": "MD",
    "massachusetts": "MA",
    "michigan": "MI",
    "minnesota": "MN",
    "mississippi": "MS",
    "missouri": "MO",
    "montana": "MT",
    "nebraska": "NE",
    "nevada": "NV",
    "new hampshire": "NH",
    "new jersey": "NJ",
    "new mexico": "NM",
    "new york": "NY",
    "north carolina": "NC",
    "north dakota": "ND",
    "ohio": "OH",
    "oklahoma": "OK",
    "oregon": "OR",
    "pennsylvania": "PA",
    "rhode island": "RI",
    "south carolina": "SC",
    "south dakota": "SD",
    "tennessee": "TN",
    "texas": "TX",
    "utah": "UT",
    "vermont": "VT",
    "virginia": "VA",
    "washington": "WA",
    "west virginia": "WV",
    "wisconsin": "WI",
    "wyoming": "WY",
}

_STATE_CODES = frozenset(_STATE_NAMES.values())

# City, nickname and Chinese aliases for the markets the broker network covers.
_ALIASES: Dict[str, str] = {
    "calif": "CA",
    "san francisco": "CA",
    "los angeles": "CA",
    "san jose": "CA",
    "san diego": "CA",
    "加州": "CA",
    "加利福尼亚": "CA",
    "洛杉矶": "CA",
    "旧金山": "CA",
    "圣何塞": "CA",
    "new york city": "NY",
    "nyc": "NY",
    "manhattan": "NY",
    "brooklyn": "NY",
    "纽约": "NY",
    "纽约州": "NY",
    "纽约市": "NY",
    "seattle": "WA",
    "bellevue": "WA",
    "华盛顿州": "WA",
    "西雅图": "WA",
    "boston": "MA",
    "马萨诸塞": "MA",
    "马萨诸塞州": "MA",
    "波士顿": "MA",
    "弗吉尼亚": "VA",
    "弗吉尼亚州": "VA",
    "dallas": "TX",
    "austin": "TX",
    "houston": "TX",
    "德州": "TX",
    "德克萨斯": "TX",
    "达拉斯": "TX",
    "奥斯汀": "TX",
    "休斯顿": "TX",
    "miami": "FL",
    "orlando": "FL",
    "佛州": "FL",
    "佛罗里达": "FL",
    "迈阿密": "FL",
    "charlotte": "NC",
    "北卡": "NC",
    "北卡罗来纳": "NC",
    "夏洛特": "NC",
    "denver": "CO",
    "科罗拉多": "CO",
    "科罗拉多州": "CO",
    "丹佛": "CO",
    "chicago": "IL",
    "伊利诺伊": "IL",
    "伊利诺伊州": "IL",
    "芝加哥": "IL",
}

_LOOKUP: Dict[str, str] = {}
for _name, _code in _STATE_NAMES.items():
    _LOOKUP[_name.replace(" ", "")] = _code
for _alias, _code in _ALIASES.items():
    _LOOKUP[_alias.replace(" ", "")] = _code

# Longest keys first so "newyorkcity" wins over "newyork"; two-letter codes are
# never substring-matched ("nevada" contains "va").
_SUBSTRING_KEYS = sorted((key for key in _LOOKUP if len(key) > 2), key=len, reverse=True)

_CLEAN_RE = re.compile(r"[^a-z一-龥]")
_SPLIT_RE = re.compile(r"[，,\s]+")


def normalize_region(value: Optional[str]) -> Optional[str]:
    """Map a state code, state name, city or Chinese alias to a two-letter region code."""
    if not value:
        return None
    cleaned = _CLEAN_RE.sub("", value.lower())
    if not cleaned:
        return None
    if len(cleaned) == 2 and cleaned.upper() in _STATE_CODES:
        return cleaned.upper()
    if cleaned in _LOOKUP:
        return _LOOKUP[cleaned]
    for key in _SUBSTRING_KEYS:
        if key in cleaned:
            return _LOOKUP[key]
    return None


# Widest window first so "West Virginia" wins over its trailing "Virginia".
_MAX_NAME_TOKENS = 3


def extract_region(location: Optional[str]) -> Optional[str]:
    """Resolve the region of a free-text location, preferring its trailing tokens."""
    if not location:
        return None
    parts = [part for part in _SPLIT_RE.split(location) if part]
    for end in range(len(parts), 0, -1):
        for width in range(min(_MAX_NAME_TOKENS, end), 1, -1):
            window = _CLEAN_RE.sub("", "".join(parts[end - width:end]).lower())
            if window in _LOOKUP:
                return _LOOKUP[window]
        region = normalize_region(parts[end - 1])
        if region:
            return region
    return normalize_region(location)
