"""Pydantic schemas for simulations and their tasks."""
from pydantic import BaseModel


class TaskSchema(BaseModel):
    index: int
    title: str
    stage: int = 1


class SimulationOutSchema(BaseModel):
    slug: str
    title: str
    total_task_count: int
    tasks: list[TaskSchema]

    class Config:
        from_attributes = True
