from simtrack.services.xp import calculate_xp, compute_badges, compute_level
from simtrack.services.seeding import seed_simulations

__all__ = ["calculate_xp", "compute_badges", "compute_level", "seed_simulations"]
