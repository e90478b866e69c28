"""XP per task, user level from total XP, and badges."""
from simtrack.schemas.xp import BadgeSchema

# Base XP by task level (stage); unknown levels count as level 1
TASK_LEVEL_XP = {
    1: 10,  # Beginner
    2: 15,  # Easy
    3: 20,  # Medium
    4: 30,  # Hard
    5: 40,  # Expert
    6: 50,  # Master
}
INCORRECT_MULTIPLIER = 0.3
XP_PER_LEVEL = 100

BADGES = [
    ("first_step", "First Step", "complete one task"),
    ("finisher", "Finisher", "complete one simulation"),
    ("explorer", "Explorer", "complete three simulations"),
]


def calculate_xp(task_level: int, is_correct: bool) -> int:
    """Return XP for one task; incorrect answers earn 30%, rounded half up."""
    base = TASK_LEVEL_XP.get(task_level, TASK_LEVEL_XP[1])
    multiplier = 1.0 if is_correct else INCORRECT_MULTIPLIER
    return int(base * multiplier + 0.5)


def compute_level(total_xp: int) -> int:
    """Level 1 starts at 0 XP; every XP_PER_LEVEL points is one level."""
    return 1 + max(0, total_xp) // XP_PER_LEVEL


def xp_to_next_level(total_xp: int) -> int:
    return XP_PER_LEVEL - max(0, total_xp) % XP_PER_LEVEL


def compute_badges(tasks_completed: int, simulations_completed: int) -> list[BadgeSchema]:
    unlocked = {
        "first_step": tasks_completed >= 1,
        "finisher": simulations_completed >= 1,
        "explorer": simulations_completed >= 3,
    }
    return [BadgeSchema(id=badge_id, name=name, unlocked=unlocked[badge_id]) for badge_id, name, _ in BADGES]
