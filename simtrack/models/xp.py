"""XP ledger: one row per awarded (attempt, task)."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from simtrack.db.session import Base


class XpTransaction(Base):
    __tablename__ = "xp_transactions"
    __table_args__ = (UniqueConstraint("attempt_id", "task_index", name="uq_xp_transactions_attempt_task"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    attempt_id = Column(String(36), ForeignKey("attempts.id"), nullable=False, index=True)
    task_index = Column(Integer, nullable=False)
    xp_amount = Column(Integer, nullable=False)
    task_level = Column(Integer, nullable=False, default=1)
    is_correct = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
