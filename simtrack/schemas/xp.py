"""Pydantic schemas for XP, levels and badges."""
from pydantic import BaseModel, Field


class ClaimXpSchema(BaseModel):
    attempt_id: str
    task_index: int = Field(ge=0)
    is_correct: bool
    task_level: int = 1


class ClaimXpOutSchema(BaseModel):
    xp_awarded: int
    total_xp: int | None = None
    level: int | None = None
    xp_to_next_level: int | None = None
    leveled_up: bool = False
    message: str | None = None


class BadgeSchema(BaseModel):
    id: str
    name: str
    unlocked: bool


class UserXpOutSchema(BaseModel):
    total_xp: int
    level: int
    xp_to_next_level: int
    badges: list[BadgeSchema]
