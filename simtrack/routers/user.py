"""User routes: progress across simulations, XP claims, level and badges."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.db.session import get_db
from simtrack.models.attempt import STATUS_COMPLETED, Attempt, AttemptStep
from simtrack.models.user import User
from simtrack.models.xp import XpTransaction
from simtrack.routers.deps import get_current_user_optional, get_session_id
from simtrack.schemas.attempt import UserAttemptSchema, UserSimulationsOutSchema
from simtrack.schemas.xp import ClaimXpOutSchema, ClaimXpSchema, UserXpOutSchema
from simtrack.services import progress as progress_service
from simtrack.services.progress import AttemptAccessError
from simtrack.services.xp import calculate_xp, compute_badges, compute_level, xp_to_next_level

router = APIRouter(prefix="/api/user", tags=["user"])


def _claim_out(user: User, xp_awarded: int, old_level: int, message: str | None = None) -> ClaimXpOutSchema:
    level = compute_level(user.total_xp)
    return ClaimXpOutSchema(
        xp_awarded=xp_awarded,
        total_xp=user.total_xp,
        level=level,
        xp_to_next_level=xp_to_next_level(user.total_xp),
        leveled_up=level > old_level,
        message=message,
    )


@router.post("/claim-xp", response_model=ClaimXpOutSchema)
async def claim_xp(
    request: Request,
    body: ClaimXpSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Award XP once per completed task of a signed-in user's attempt."""
    try:
        attempt, _ = await progress_service.get_owned_attempt(
            db,
            body.attempt_id,
            current_user.id if current_user else None,
            get_session_id(request),
        )
    except AttemptAccessError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    if attempt.user_id is None:
        return ClaimXpOutSchema(xp_awarded=0, message="Guest attempt - no XP awarded")

    completed = await progress_service.completed_indices(db, attempt.id)
    if body.task_index not in completed:
        raise HTTPException(status_code=400, detail="Task not completed")

    user = current_user
    old_level = compute_level(user.total_xp)
    result = await db.execute(
        select(XpTransaction.id).where(
            XpTransaction.attempt_id == attempt.id,
            XpTransaction.task_index == body.task_index,
        )
    )
    if result.scalar_one_or_none() is not None:
        return _claim_out(user, 0, old_level, message="XP already claimed")

    xp = calculate_xp(body.task_level, body.is_correct)
    user.total_xp = (user.total_xp or 0) + xp
    db.add(
        XpTransaction(
            user_id=user.id,
            attempt_id=attempt.id,
            task_index=body.task_index,
            xp_amount=xp,
            task_level=body.task_level,
            is_correct=body.is_correct,
        )
    )
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await db.refresh(user)
        return _claim_out(user, 0, old_level, message="XP already claimed")

    await db.refresh(user)
    return _claim_out(user, xp, old_level)


@router.get("/xp", response_model=UserXpOutSchema)
async def get_xp(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Total XP, level and badges of the signed-in user."""
    if current_user is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    tasks_result = await db.execute(
        select(func.count(AttemptStep.id))
        .join(Attempt, Attempt.id == AttemptStep.attempt_id)
        .where(Attempt.user_id == current_user.id)
    )
    sims_result = await db.execute(
        select(func.count(Attempt.id)).where(
            Attempt.user_id == current_user.id,
            Attempt.status == STATUS_COMPLETED,
        )
    )
    total_xp = current_user.total_xp or 0
    return UserXpOutSchema(
        total_xp=total_xp,
        level=compute_level(total_xp),
        xp_to_next_level=xp_to_next_level(total_xp),
        badges=compute_badges(tasks_result.scalar_one(), sims_result.scalar_one()),
    )


@router.get("/simulations", response_model=UserSimulationsOutSchema)
async def get_user_simulations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Every attempt of the signed-in user with its progress, newest first."""
    if current_user is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    rows = []
    for attempt, simulation in await progress_service.list_user_attempts(db, current_user.id):
        completed = await progress_service.completed_indices(db, attempt.id)
        total = simulation.total_task_count
        rows.append(
            UserAttemptSchema(
                attempt_id=attempt.id,
                simulation_slug=simulation.slug,
                simulation_title=simulation.title,
                status=attempt.status,
                created_at=attempt.created_at,
                completed_at=attempt.completed_at,
                completed_task_indices=completed,
                completed_tasks=len(completed),
                total_tasks=total,
                percentage=progress_service.progress_percentage(len(completed), total),
            )
        )
    return UserSimulationsOutSchema(simulations=rows)
