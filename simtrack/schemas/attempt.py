"""Pydantic schemas for attempts and their progress."""
from datetime import datetime

from pydantic import BaseModel, Field


class AttemptStartSchema(BaseModel):
    simulation_slug: str


class AttemptRefSchema(BaseModel):
    attempt_id: str


class TaskCompletionSchema(BaseModel):
    attempt_id: str
    task_index: int = Field(ge=0)


class AttemptProgressOutSchema(BaseModel):
    attempt_id: str
    simulation_slug: str
    completed_task_indices: list[int]
    total_task_count: int
    status: str = "started"


class UserAttemptSchema(BaseModel):
    """One row of the dashboard: an attempt and how far it got."""

    attempt_id: str
    simulation_slug: str
    simulation_title: str
    status: str
    created_at: datetime | None = None
    completed_at: datetime | None = None
    completed_task_indices: list[int]
    completed_tasks: int
    total_tasks: int
    percentage: int


class UserSimulationsOutSchema(BaseModel):
    simulations: list[UserAttemptSchema]
