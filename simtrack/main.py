"""Career simulation progress service - FastAPI app entry point."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from simtrack.core.config import get_settings
from simtrack.core.log import setup_logging
from simtrack.db.base import Base
from simtrack.db.session import engine, AsyncSessionLocal
from simtrack.routers import api, user, web
from simtrack.services.seeding import seed_simulations

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await seed_simulations(db)

    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Attempt store and progress tracking for career simulations",
    lifespan=lifespan,
)

app.include_router(web.router)
app.include_router(api.router)
app.include_router(user.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
