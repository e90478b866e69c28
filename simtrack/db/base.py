"""SQLAlchemy declarative base and model imports for Alembic."""
from simtrack.db.session import Base

# Import all models so Alembic can see them
from simtrack.models.attempt import Attempt, AttemptStep  # noqa: F401
from simtrack.models.simulation import Simulation  # noqa: F401
from simtrack.models.user import User  # noqa: F401
from simtrack.models.xp import XpTransaction  # noqa: F401

__all__ = ["Base", "User", "Simulation", "Attempt", "AttemptStep", "XpTransaction"]
