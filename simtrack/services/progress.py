"""Attempt store operations: start, read, complete, reset."""
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.engine.gating import all_completed
from simtrack.models.attempt import STATUS_COMPLETED, STATUS_STARTED, Attempt, AttemptStep
from simtrack.models.simulation import Simulation
from simtrack.schemas.attempt import AttemptProgressOutSchema

logger = logging.getLogger(__name__)


class AttemptAccessError(Exception):
    """Raised when the caller does not own the attempt (or has no identity)."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


def check_owner(attempt: Attempt, user_id: int | None, session_id: str | None) -> None:
    if attempt.user_id is not None:
        if user_id is None:
            raise AttemptAccessError(401, "Authentication required")
        if attempt.user_id != user_id:
            raise AttemptAccessError(403, "Unauthorized")
        return
    if not session_id:
        raise AttemptAccessError(401, "Session required")
    if attempt.session_id != session_id:
        raise AttemptAccessError(403, "Unauthorized")


async def get_simulation_by_slug(db: AsyncSession, slug: str) -> Simulation | None:
    result = await db.execute(select(Simulation).where(Simulation.slug == slug, Simulation.active.is_(True)))
    return result.scalar_one_or_none()


async def get_owned_attempt(
    db: AsyncSession,
    attempt_id: str,
    user_id: int | None,
    session_id: str | None,
) -> tuple[Attempt, Simulation]:
    result = await db.execute(
        select(Attempt, Simulation)
        .join(Simulation, Simulation.id == Attempt.simulation_id)
        .where(Attempt.id == attempt_id)
    )
    row = result.one_or_none()
    if row is None:
        raise AttemptAccessError(404, "Attempt not found")
    attempt, simulation = row
    check_owner(attempt, user_id, session_id)
    return attempt, simulation


async def completed_indices(db: AsyncSession, attempt_id: str) -> list[int]:
    # IMPORTANT: with AsyncSession don't rely on lazy relationship loading
    result = await db.execute(
        select(AttemptStep.step_index)
        .where(AttemptStep.attempt_id == attempt_id)
        .order_by(AttemptStep.step_index.asc())
    )
    return [i for (i,) in result.all()]


async def progress_out(db: AsyncSession, attempt: Attempt, simulation: Simulation) -> AttemptProgressOutSchema:
    return AttemptProgressOutSchema(
        attempt_id=attempt.id,
        simulation_slug=simulation.slug,
        completed_task_indices=await completed_indices(db, attempt.id),
        total_task_count=simulation.total_task_count,
        status=attempt.status,
    )


async def _find_attempt(
    db: AsyncSession,
    simulation_id: int,
    user_id: int | None,
    session_id: str | None,
) -> Attempt | None:
    query = select(Attempt).where(Attempt.simulation_id == simulation_id)
    if user_id is not None:
        query = query.where(Attempt.user_id == user_id)
    else:
        query = query.where(Attempt.user_id.is_(None), Attempt.session_id == session_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def list_user_attempts(db: AsyncSession, user_id: int) -> list[tuple[Attempt, Simulation]]:
    """The user's attempts with their simulations, newest first."""
    result = await db.execute(
        select(Attempt, Simulation)
        .join(Simulation, Simulation.id == Attempt.simulation_id)
        .where(Attempt.user_id == user_id)
        .order_by(Attempt.created_at.desc(), Attempt.id.asc())
    )
    return [(attempt, simulation) for attempt, simulation in result.all()]


def progress_percentage(completed_count: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(completed_count * 100 / total + 0.5)


async def start_attempt(
    db: AsyncSession,
    simulation: Simulation,
    user_id: int | None,
    session_id: str,
) -> Attempt:
    """Return the attempt for (simulation, user-or-session), creating it if needed."""
    attempt = await _find_attempt(db, simulation.id, user_id, session_id)
    if attempt is not None:
        return attempt

    attempt = Attempt(
        simulation_id=simulation.id,
        user_id=user_id,
        session_id=None if user_id is not None else session_id,
        status=STATUS_STARTED,
    )
    db.add(attempt)
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent start created it first
        await db.rollback()
        await db.refresh(simulation)
        existing = await _find_attempt(db, simulation.id, user_id, session_id)
        if existing is None:
            raise
        return existing
    await db.refresh(attempt)
    logger.info("attempt %s started for simulation %s", attempt.id, simulation.slug)
    return attempt


async def complete_task(db: AsyncSession, attempt: Attempt, simulation: Simulation, task_index: int) -> bool:
    """Record one completion. Returns False when it was already recorded."""
    total = simulation.total_task_count
    if task_index < 0 or task_index >= total:
        raise ValueError(f"task index {task_index} outside 0..{total - 1}")

    existing = await completed_indices(db, attempt.id)
    if task_index in existing:
        return False

    db.add(AttemptStep(attempt_id=attempt.id, step_index=task_index))
    try:
        await db.commit()
    except IntegrityError:
        # concurrent duplicate insert; the unique constraint keeps one row
        await db.rollback()
        await db.refresh(attempt)
        await db.refresh(simulation)
        return False

    if all_completed(existing + [task_index], total) and attempt.status != STATUS_COMPLETED:
        attempt.status = STATUS_COMPLETED
        attempt.completed_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info("attempt %s completed all %s tasks", attempt.id, total)
    return True


async def reset_attempt(db: AsyncSession, attempt: Attempt) -> None:
    await db.execute(delete(AttemptStep).where(AttemptStep.attempt_id == attempt.id))
    attempt.status = STATUS_STARTED
    attempt.completed_at = None
    await db.commit()
    logger.info("attempt %s reset", attempt.id)
