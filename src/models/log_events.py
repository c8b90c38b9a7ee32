"""
Log Event Models

LogEntry is one raw line as delivered by the Observer; LogEvent is the typed
result of parsing it. A single line may yield several events (the
"Player stacks" line announces every seated player), so events are keyed by
(created_at, sub_index).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from .enums import LogActionKind, LogEventKind


def created_at_sort_key(created_at: str) -> tuple:
    """
    Ordering key for log watermarks.

    Numeric ids (epoch-based) compare numerically, anything else (ISO
    timestamps) lexicographically. Numeric ids sort before non-numeric ones.
    """
    value = str(created_at).strip()
    if value.isdigit():
        return (0, int(value), "")
    return (1, 0, value)


def is_after(created_at: str, watermark: str) -> bool:
    """True if created_at is strictly after the watermark"""
    if not watermark:
        return True
    return created_at_sort_key(created_at) > created_at_sort_key(watermark)


def newest(a: str, b: str) -> str:
    """The later of two watermarks (empty string counts as oldest)"""
    if not a:
        return b
    if not b:
        return a
    return a if created_at_sort_key(a) >= created_at_sort_key(b) else b


class LogEntry(BaseModel):
    """One raw table-log line"""

    msg: str
    created_at: str

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, v):
        if isinstance(v, int):
            return str(v)
        return v

    class Config:
        """Pydantic model configuration."""

        frozen = True
        extra = "ignore"


class LogEvent(BaseModel):
    """Typed event parsed from a LogEntry"""

    kind: LogEventKind
    created_at: str
    sub_index: int = 0

    player_id: str | None = None
    player_name: str | None = None
    seat: int | None = None
    amount: Decimal | None = None

    action: LogActionKind | None = None
    all_in: bool = False

    cards: list[str] = Field(default_factory=list)
    hand_number: int | None = None
    hand_id: str | None = None
    dealer_id: str | None = None
    raw: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, v):
        if v is None:
            return None
        if isinstance(v, float):
            return Decimal(str(v))
        if isinstance(v, str):
            return Decimal(v.replace(",", ""))
        return v

    @property
    def key(self) -> tuple[str, int]:
        """De-duplication key"""
        return (self.created_at, self.sub_index)

    @property
    def sort_key(self) -> tuple:
        return (created_at_sort_key(self.created_at), self.sub_index)

    class Config:
        """Pydantic model configuration."""

        frozen = True
