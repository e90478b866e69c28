from simtrack.schemas.attempt import (
    AttemptProgressOutSchema,
    AttemptRefSchema,
    AttemptStartSchema,
    TaskCompletionSchema,
    UserAttemptSchema,
    UserSimulationsOutSchema,
)
from simtrack.schemas.simulation import SimulationOutSchema, TaskSchema
from simtrack.schemas.xp import BadgeSchema, ClaimXpOutSchema, ClaimXpSchema, UserXpOutSchema

__all__ = [
    "AttemptProgressOutSchema",
    "AttemptRefSchema",
    "AttemptStartSchema",
    "TaskCompletionSchema",
    "UserAttemptSchema",
    "UserSimulationsOutSchema",
    "SimulationOutSchema",
    "TaskSchema",
    "BadgeSchema",
    "ClaimXpOutSchema",
    "ClaimXpSchema",
    "UserXpOutSchema",
]
