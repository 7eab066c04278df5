"""
Order and delivery-date models shared by the reconciliation engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class TagFormat(str, Enum):
    """Canonical renderings a delivery date may take in the tag set."""
    DAY_FIRST = "DD-MM-YYYY"
    ISO = "YYYY-MM-DD"

    @classmethod
    def parse(cls, value: str) -> "TagFormat":
        """Resolve a configured format name, e.g. 'DD-MM-YYYY'."""
        normalized = (value or "").strip().upper()
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        raise ValueError(f"Unknown tag format: {value!r} (expected one of {[f.value for f in cls]})")


@dataclass(frozen=True)
class DeliveryDate:
    """A (year, month, day) triple read from a note directive.

    Only the shape is validated: year in 1970-2069, month in 1-12 and day in
    1-31. A date such as 2025-02-31 is accepted as-is.
    """
    year: int
    month: int
    day: int

    def render(self, fmt: TagFormat) -> str:
        if fmt == TagFormat.ISO:
            return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
        return f"{self.day:02d}-{self.month:02d}-{self.year:04d}"

    def renderings(self):
        """Every canonical rendering of this date."""
        return {self.render(fmt) for fmt in TagFormat}

    def isoformat(self) -> str:
        return self.render(TagFormat.ISO)


@dataclass
class OrderRecord:
    """Current state of an order as returned by the order store."""
    id: Union[int, str]
    tags: str = ""
    note: Optional[str] = None
    created_at: Optional[str] = None


class OrderEvent(BaseModel):
    """Order webhook body. Only the fields the engine reads are declared."""
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    tags: Optional[str] = ""
    note: Optional[str] = None
    created_at: Optional[str] = None
