from simtrack.models.user import User
from simtrack.models.simulation import Simulation
from simtrack.models.attempt import Attempt, AttemptStep
from simtrack.models.xp import XpTransaction

__all__ = ["User", "Simulation", "Attempt", "AttemptStep", "XpTransaction"]
