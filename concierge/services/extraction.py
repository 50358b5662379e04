from __future__ import annotations

import re
from typing import Optional, Protocol, Tuple

import logging

from concierge.models.profile import Profile
from concierge.services.priority import classify_priority

logger = logging.getLogger(__name__)

# Loan amounts below this are discarded; guards against postal codes and small
# unrelated numbers being read as a budget.
MIN_LOAN_AMOUNT = 50_000

_LOCATION_STOP = r"(?=\s+(?:and|with|but|for|my|our|credit|budget|priority|looking|closing|to|by|next|this|within)\b|\s*[.;!?(]|\s*,(?!\s*[A-Za-z]{2}\b)|\s*$)"

# Connectives and filler words that follow "in" without naming a place ("in with family", "in a hurry").
_LOCATION_LEAD = (
    r"(?!(?:with|and|but|for|to|by|next|this|within|a|an|the|my|our|your|cash|total|person|advance|mind|case|time)\b)"
)

_LOCATION_PATTERNS = [
    re.compile(r"\bin\s+" + _LOCATION_LEAD + r"([A-Za-z][A-Za-z\s]*?(?:,\s*[A-Za-z]{2}\b)?)" + _LOCATION_STOP, re.I),
    re.compile(r"(?:(?<![现正存])在|位于)\s*([一-龥A-Za-z]{2,12}?)(?=买|购|贷|置|看|的|附近|，|,|。|\s|$)"),
]

_POSTAL_CODE = re.compile(r"(?<![\d$,.])\d{5}(?!\d|,\d|\.\d|\s*(?:k|m|万)(?![A-Za-z]))", re.I)

# A bare five-digit number is a postal code unless the turn talks about money and
# not about a zip code.
_POSTAL_CUE = re.compile(r"\b(?:zip|postal)(?:\s*code)?\b|\bzipcode\b|邮编|邮政编码", re.I)
_AMOUNT_CUE = re.compile(
    r"\b(?:loan|budget|borrow\w*|amount|financ\w*|mortgage|price|purchase)\b|贷款|预算|借款|房价", re.I
)

_CREDIT_PATTERN = re.compile(
    r"(?:credit(?:\s+score)?|fico(?:\s+score)?|信用(?:评)?分(?:数)?)\s*"
    r"(?:is|of|around|about|=|:|：|是|为|约|大约)?\s*(\d{3})(?!\d)",
    re.I,
)

_AMOUNT_PATTERN = re.compile(
    r"(?P<currency>\$|usd\s*)?"
    r"(?P<number>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
    r"\s*(?P<unit>million|mil|mm|m|k|万)?(?![A-Za-z0-9])",
    re.I,
)

_UNIT_SCALE = {
    "k": 1_000,
    "m": 1_000_000,
    "mm": 1_000_000,
    "mil": 1_000_000,
    "million": 1_000_000,
    "万": 10_000,
}

_TIMELINE_PATTERNS = [
    re.compile(
        r"next month|this month|next week|(?:in|within) \d+\s*(?:days|weeks|months)"
        r"|this quarter|next quarter|already signed|purchase agreement|under contract",
        re.I,
    ),
    re.compile(r"下个月|这个月|本月|下周|本季度|下个季度|\d+\s*(?:周|个月|天)内|已经?签约|已签合同|购房合同"),
]


def _reads_as_postal_code(text: str) -> bool:
    return bool(_POSTAL_CUE.search(text)) or not _AMOUNT_CUE.search(text)


class FieldExtractor(Protocol):
    def extract(self, text: str) -> Profile:
        ...


class RegexFieldExtractor:
    """Pattern-based extractor for English and Chinese borrower turns."""

    def extract(self, text: str) -> Profile:
        if not text or not text.strip():
            return Profile()

        credit, credit_span = self._extract_credit(text)
        profile = Profile(
            location=self._extract_location(text),
            credit=credit,
            amount=self._extract_amount(text, credit_span),
            timeline=self._extract_timeline(text),
            priority=classify_priority(text),
        )
        logger.debug("extraction.fields %s", profile.present_fields())
        return profile

    def _extract_location(self, text: str) -> Optional[str]:
        for pattern in _LOCATION_PATTERNS:
            match = pattern.search(text)
            if match:
                location = match.group(1).strip()
                if location:
                    return location
        match = _POSTAL_CODE.search(text)
        if match and _reads_as_postal_code(text):
            return match.group(0)
        return None

    def _extract_credit(self, text: str) -> Tuple[Optional[str], Optional[Tuple[int, int]]]:
        match = _CREDIT_PATTERN.search(text)
        if not match:
            return None, None
        return match.group(1), match.span(1)

    def _extract_amount(self, text: str, skip_span: Optional[Tuple[int, int]] = None) -> Optional[float]:
        for match in _AMOUNT_PATTERN.finditer(text):
            if skip_span and match.start("number") < skip_span[1] and skip_span[0] < match.end("number"):
                continue
            raw = match.group("number")
            unit = (match.group("unit") or "").lower()
            integer_digits = len(raw.split(".")[0].replace(",", ""))

            if unit:
                if integer_digits > 7:
                    continue
            else:
                if not 4 <= integer_digits <= 7 or "." in raw:
                    continue
                bare_five = integer_digits == 5 and "," not in raw and not match.group("currency")
                if bare_five and _reads_as_postal_code(text):
                    continue

            amount = float(raw.replace(",", "")) * _UNIT_SCALE.get(unit, 1)
            if amount < MIN_LOAN_AMOUNT:
                logger.debug("extraction.amount_below_floor amount=%s", amount)
                continue
            return amount
        return None

    def _extract_timeline(self, text: str) -> Optional[str]:
        for pattern in _TIMELINE_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(0).lower()
        return None


_default_extractor = RegexFieldExtractor()


def extract_fields(text: str, extractor: Optional[FieldExtractor] = None) -> Profile:
    return (extractor or _default_extractor).extract(text)
