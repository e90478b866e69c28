"""Seed a starter catalogue of simulations when the table is empty."""
import json
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.models.simulation import Simulation

logger = logging.getLogger(__name__)

SEED_SIMULATIONS = [
    {
        "slug": "product-manager",
        "title": "A Week as a Product Manager",
        "steps": [
            {"title": "Read the customer interviews", "stage": 1},
            {"title": "Pick the problem worth solving", "stage": 2},
            {"title": "Write a one-page brief", "stage": 3},
            {"title": "Prioritise the backlog", "stage": 3},
            {"title": "Present to leadership", "stage": 4},
        ],
    },
    {
        "slug": "data-analyst",
        "title": "Data Analyst: Churn Investigation",
        "steps": [
            {"title": "Match metrics to definitions", "stage": 1},
            {"title": "Spot the broken chart", "stage": 2},
            {"title": "Explain the churn spike", "stage": 3},
        ],
    },
]


async def seed_simulations(db: AsyncSession) -> int:
    """Insert SEED_SIMULATIONS if no simulation exists yet; returns rows added."""
    result = await db.execute(select(func.count(Simulation.id)))
    if result.scalar_one() > 0:
        return 0

    for item in SEED_SIMULATIONS:
        db.add(
            Simulation(
                slug=item["slug"],
                title=item["title"],
                steps_json=json.dumps(item["steps"]),
                active=True,
            )
        )
    await db.commit()
    logger.info("seeded %s simulations", len(SEED_SIMULATIONS))
    return len(SEED_SIMULATIONS)
