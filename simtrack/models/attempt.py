"""Attempt model: one run of one simulation by a user or a guest session."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from simtrack.db.session import Base

STATUS_STARTED = "started"
STATUS_COMPLETED = "completed"


def _new_attempt_id() -> str:
    return str(uuid.uuid4())


class Attempt(Base):
    __tablename__ = "attempts"
    # NULL owner columns never collide, so each constraint binds one kind of owner
    __table_args__ = (
        UniqueConstraint("simulation_id", "user_id", name="uq_attempts_simulation_user"),
        UniqueConstraint("simulation_id", "session_id", name="uq_attempts_simulation_session"),
    )

    id = Column(String(36), primary_key=True, default=_new_attempt_id)
    simulation_id = Column(Integer, ForeignKey("simulations.id"), nullable=False, index=True)
    # Owner: user_id for signed-in users, session_id (guest cookie) otherwise
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    session_id = Column(String(64), nullable=True, index=True)
    status = Column(String(16), nullable=False, default=STATUS_STARTED)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    simulation = relationship("Simulation", back_populates="attempts")
    user = relationship("User", back_populates="attempts")
    steps = relationship(
        "AttemptStep",
        back_populates="attempt",
        order_by="AttemptStep.step_index",
        cascade="all, delete-orphan",
    )


class AttemptStep(Base):
    """One completed task (0-based step_index) of an attempt."""

    __tablename__ = "attempt_steps"
    __table_args__ = (UniqueConstraint("attempt_id", "step_index", name="uq_attempt_steps_attempt_step"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    attempt_id = Column(String(36), ForeignKey("attempts.id"), nullable=False, index=True)
    step_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    attempt = relationship("Attempt", back_populates="steps")
