"""
Bot Action and Oracle message models
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from .enums import ActionKind, Role


class BotAction(BaseModel):
    """Recommended action produced by the decision protocol"""

    action_kind: ActionKind
    size_in_big_blinds: Decimal = Field(default=Decimal("0"), ge=0)
    rationale: str | None = None

    @field_validator("size_in_big_blinds", mode="before")
    @classmethod
    def _coerce_size(cls, v):
        if v is None:
            return Decimal("0")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @classmethod
    def check(cls, rationale: str | None = None) -> BotAction:
        return cls(action_kind=ActionKind.CHECK, rationale=rationale)

    @classmethod
    def fold(cls, rationale: str | None = None) -> BotAction:
        return cls(action_kind=ActionKind.FOLD, rationale=rationale)

    def describe(self) -> str:
        """Short form used in logs and history ("raise 4 BB")"""
        if self.action_kind.is_sized and self.size_in_big_blinds > 0:
            size = self.size_in_big_blinds.normalize()
            return f"{self.action_kind.value} {size:f} BB"
        return self.action_kind.value

    class Config:
        """Pydantic model configuration."""

        frozen = True


class AIMessage(BaseModel):
    """One message of the Oracle conversation"""

    text: str
    role: Role

    class Config:
        """Pydantic model configuration."""

        frozen = True


class OracleResponse(BaseModel):
    """What an Oracle returns for one query"""

    text: str
    parsed_action: BotAction | None = None
