"""Monthly goal domain service."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

import structlog

from finovate.database.base import Database
from finovate.domain.entities import GoalProgress
from finovate.domain.errors import ValidationError
from finovate.utils.amount_parser import ZERO, parse_amount

logger = structlog.get_logger(__name__)

MAX_MONTHLY_GOAL = Decimal("10000000")
ONE = Decimal("1")


def validate_goal(value: Any) -> Decimal:
    """Coerce and validate a goal value.

    Raises:
        ValidationError: If the value is not a finite number in [0, MAX_MONTHLY_GOAL]
    """
    message = f"Goal must be a number between 0 and {MAX_MONTHLY_GOAL:,}"
    if isinstance(value, bool) or value is None:
        raise ValidationError.for_field("goal", message)
    try:
        if isinstance(value, str):
            goal = parse_amount(value)
        else:
            goal = Decimal(str(value))
    except (ValueError, ArithmeticError):
        raise ValidationError.for_field("goal", message)

    if not goal.is_finite() or goal < ZERO or goal > MAX_MONTHLY_GOAL:
        raise ValidationError.for_field("goal", message)
    return goal.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def goal_progress(income: Decimal, goal: Decimal) -> Optional[GoalProgress]:
    """Progress of ``income`` towards ``goal``; None when no goal is set."""
    if goal <= ZERO:
        return None
    ratio = income / goal
    return GoalProgress(
        goal=goal,
        income=income,
        ratio=ratio,
        percent_complete=min(max(ratio, ZERO), ONE),
    )


class GoalService:
    """Service for the per-owner monthly goal."""

    def __init__(self, db: Database):
        """Initialize goal service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_goal(self, owner_id: str) -> Decimal:
        """Get the owner's monthly goal, 0 if never set."""
        goal = self.db.get_goal(owner_id)
        return goal if goal is not None else ZERO

    def set_goal(self, owner_id: str, value: Any) -> Decimal:
        """Replace the owner's monthly goal.

        Args:
            owner_id: Owner scope
            value: Number or numeric string

        Returns:
            The stored goal

        Raises:
            ValidationError: If the value is out of range or not numeric
        """
        goal = validate_goal(value)
        self.db.set_goal(owner_id, goal)
        logger.info("monthly_goal_updated", owner_id=owner_id, goal=str(goal))
        return goal
