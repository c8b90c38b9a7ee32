"""
Observer snapshot models

One tagged snapshot type regardless of how the Observer extracts data
(DOM scraping, OCR, recorded replay). Chip amounts are raw chips; the
aggregate converts to big blinds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _coerce_chips(v):
    if v is None:
        return Decimal("0")
    if isinstance(v, float):
        return Decimal(str(v))
    if isinstance(v, str):
        return Decimal(v.replace(",", "").strip() or "0")
    return v


class SeatSnapshot(BaseModel):
    """One occupied seat as seen on the table"""

    seat: int
    name: str
    stack: Decimal = Decimal("0")
    bet: Decimal = Decimal("0")
    folded: bool = False
    all_in: bool = False
    is_dealer: bool = False
    is_current_turn: bool = False

    @field_validator("stack", "bet", mode="before")
    @classmethod
    def _coerce_decimal(cls, v):
        return _coerce_chips(v)


class TableSnapshot(BaseModel):
    """Freshest view of the table"""

    source: Literal["dom", "ocr", "replay"] = "dom"
    pot: Decimal = Decimal("0")
    hero_hand: list[str] = Field(default_factory=list)
    hero_stack: Decimal = Decimal("0")
    community_cards: list[str] = Field(default_factory=list)
    players: list[SeatSnapshot] = Field(default_factory=list)

    @field_validator("pot", "hero_stack", mode="before")
    @classmethod
    def _coerce_decimal(cls, v):
        return _coerce_chips(v)

    @property
    def num_players(self) -> int:
        return len(self.players)


class GameInfo(BaseModel):
    """Blinds and timing of the current game"""

    small_blind: Decimal
    big_blind: Decimal
    variant: str = "NLH"
    max_turn_length: float = 30.0

    @field_validator("small_blind", "big_blind", mode="before")
    @classmethod
    def _coerce_decimal(cls, v):
        return _coerce_chips(v)
