"""API routes: JSON for simulations and attempt progress."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.db.session import get_db
from simtrack.models.user import User
from simtrack.routers.deps import (
    ensure_session_cookie,
    get_current_user_optional,
    get_or_create_session_id,
    get_session_id,
)
from simtrack.schemas.attempt import (
    AttemptProgressOutSchema,
    AttemptRefSchema,
    AttemptStartSchema,
    TaskCompletionSchema,
)
from simtrack.schemas.simulation import SimulationOutSchema, TaskSchema
from simtrack.services import progress as progress_service
from simtrack.services.progress import AttemptAccessError

router = APIRouter(prefix="/api", tags=["api"])


async def _owned_attempt(db, attempt_id: str, request: Request, current_user: User | None):
    try:
        return await progress_service.get_owned_attempt(
            db,
            attempt_id,
            current_user.id if current_user else None,
            get_session_id(request),
        )
    except AttemptAccessError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/simulations/{slug}", response_model=SimulationOutSchema)
async def get_simulation(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get one simulation by slug, with its task list."""
    simulation = await progress_service.get_simulation_by_slug(db, slug)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")

    tasks = [
        TaskSchema(index=i, title=step.get("title") or f"Task {i + 1}", stage=int(step.get("stage") or 1))
        for i, step in enumerate(simulation.steps)
    ]
    return SimulationOutSchema(
        slug=simulation.slug,
        title=simulation.title,
        total_task_count=len(tasks),
        tasks=tasks,
    )


@router.post("/attempt/start", response_model=AttemptProgressOutSchema)
async def start_attempt(
    request: Request,
    response: Response,
    body: AttemptStartSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Return the caller's attempt for a simulation, creating it on first start."""
    simulation = await progress_service.get_simulation_by_slug(db, body.simulation_slug)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")

    sid = get_or_create_session_id(request)
    attempt = await progress_service.start_attempt(
        db,
        simulation,
        current_user.id if current_user else None,
        sid,
    )
    if current_user is None:
        ensure_session_cookie(request, response, sid)
    return await progress_service.progress_out(db, attempt, simulation)


@router.get("/attempt/progress", response_model=AttemptProgressOutSchema)
async def get_progress(
    request: Request,
    attempt_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Completed task indices for an attempt."""
    attempt, simulation = await _owned_attempt(db, attempt_id, request, current_user)
    return await progress_service.progress_out(db, attempt, simulation)


@router.post("/attempt/progress", response_model=AttemptProgressOutSchema)
async def save_progress(
    request: Request,
    body: TaskCompletionSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Mark one task completed; marking it again is a no-op."""
    attempt, simulation = await _owned_attempt(db, body.attempt_id, request, current_user)
    try:
        await progress_service.complete_task(db, attempt, simulation, body.task_index)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid task index") from exc
    return await progress_service.progress_out(db, attempt, simulation)


@router.post("/attempt/reset")
async def reset_attempt(
    request: Request,
    body: AttemptRefSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
):
    """Clear all completed tasks of an attempt."""
    attempt, _ = await _owned_attempt(db, body.attempt_id, request, current_user)
    await progress_service.reset_attempt(db, attempt)
    return {"success": True}
