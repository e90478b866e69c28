"""Web routes: simulation overview page. Jinja2 templates."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.core.config import BASE_DIR
from simtrack.db.session import get_db
from simtrack.engine.gating import all_completed, task_statuses
from simtrack.models.user import User
from simtrack.routers.deps import get_current_user_optional, get_session_id
from simtrack.services import progress as progress_service
from simtrack.services.progress import AttemptAccessError

router = APIRouter()
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


@router.get("/s/{slug}", response_class=HTMLResponse)
async def simulation_overview(
    request: Request,
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
    attempt_id: str | None = None,
):
    simulation = await progress_service.get_simulation_by_slug(db, slug)
    if not simulation:
        raise HTTPException(status_code=404, detail="Simulation not found")

    completed: list[int] = []
    if attempt_id:
        try:
            attempt, _ = await progress_service.get_owned_attempt(
                db,
                attempt_id,
                current_user.id if current_user else None,
                get_session_id(request),
            )
        except AttemptAccessError as exc:
            raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
        completed = await progress_service.completed_indices(db, attempt.id)

    steps = simulation.steps
    statuses = task_statuses(set(completed), len(steps))
    tasks = [
        {
            "index": i,
            "title": step.get("title") or f"Task {i + 1}",
            "status": statuses[i].value,
        }
        for i, step in enumerate(steps)
    ]
    return templates.TemplateResponse(
        request,
        "overview.html",
        {
            "current_user": current_user,
            "is_guest": current_user is None,
            "simulation": simulation,
            "tasks": tasks,
            "completed_count": len(completed),
            "all_completed": all_completed(set(completed), len(steps)),
        },
    )
