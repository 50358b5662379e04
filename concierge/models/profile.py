from __future__ import annotations

import math
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from concierge.services.priority import classify_priority

PriorityKey = Literal["rate", "ltv", "speed", "documents"]

PROFILE_FIELDS = ("location", "timeline", "priority", "credit", "amount")


class Profile(BaseModel):
    """Structured borrower intake state. Every field is independently optional."""

    model_config = ConfigDict(extra="ignore")

    location: Optional[str] = None
    timeline: Optional[str] = None
    priority: Optional[PriorityKey] = None
    credit: Optional[str] = None
    amount: Optional[float] = Field(default=None, description="Target loan amount in USD.")

    def present_fields(self) -> List[str]:
        return [name for name in PROFILE_FIELDS if getattr(self, name) not in (None, "")]

    def is_empty(self) -> bool:
        return not self.present_fields()

    def merge(self, other: Profile) -> Profile:
        """Overlay the populated fields of ``other``; absent fields never clear existing values."""
        updates = {name: getattr(other, name) for name in other.present_fields()}
        return self.model_copy(update=updates)


class ManualProfileForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    city: Optional[str] = None
    credit: Optional[str] = None
    amount: Optional[str] = None
    priority: Optional[str] = None

    def to_profile(self) -> Profile:
        amount: Optional[float] = None
        if self.amount:
            try:
                amount = float(self.amount.replace(",", "").replace("$", "").strip())
            except ValueError:
                amount = None
            if amount is not None and not math.isfinite(amount):
                amount = None
        return Profile(
            location=(self.city or "").strip() or None,
            credit=(self.credit or "").strip() or None,
            amount=amount,
            priority=classify_priority(self.priority or ""),
        )
