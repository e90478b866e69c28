"""Simulation model: an ordered list of tasks (JSON) behind a public slug."""
import json

from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from simtrack.db.session import Base


class Simulation(Base):
    __tablename__ = "simulations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(128), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    # steps: JSON array of {title, stage, ...}; content is authored elsewhere
    steps_json = Column(Text, nullable=False, default="[]")
    active = Column(Boolean, nullable=False, default=True)

    attempts = relationship("Attempt", back_populates="simulation")

    @property
    def steps(self) -> list[dict]:
        return json.loads(self.steps_json or "[]")

    @property
    def total_task_count(self) -> int:
        return len(self.steps)
