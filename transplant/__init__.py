"""Team transplant engine.

Keep one team's identity in a target league file and replace its name, cosmetics and roster
with a donor team read from a second, attached league file.
"""

from transplant.apply import TransplantResult, apply_transplant
from transplant.plan import ROSTER_DELETE_ORDER, DeletionStep, TransplantPlan

__all__ = [
    "DeletionStep",
    "ROSTER_DELETE_ORDER",
    "TransplantPlan",
    "TransplantResult",
    "apply_transplant",
]
