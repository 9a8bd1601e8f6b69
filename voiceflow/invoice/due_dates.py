"""Resolution of spoken due-date hints into calendar dates."""

import logging
from datetime import date, datetime, time, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from voiceflow.shared.errors import DueDateParseError

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30


def parse_absolute_date(hint: str, today: date | None = None) -> date:
    """Parse an absolute date hint such as '2025-03-01'.

    Parts missing from the hint (year, month) are taken from today.

    Raises:
        DueDateParseError: If the hint is not a recognizable date
    """
    try:
        default = datetime.combine(today or date.today(), time())
        return date_parser.parse(hint, default=default).date()
    except (ValueError, OverflowError) as e:
        raise DueDateParseError(f"Could not parse due date '{hint}'") from e


def resolve_due_date(hint: str, today: date) -> date:
    """Turn a due-date hint into an absolute date.

    'week' anywhere in the hint means today + 7 days, 'month' means today + one
    calendar month; anything else is parsed as a date, defaulting to
    today + 30 days when it cannot be parsed.

    Args:
        hint: Due date as extracted, e.g. 'next week' or '2025-03-01'
        today: Invoice date

    Returns:
        Absolute due date
    """
    lowered = hint.lower()
    if "week" in lowered:
        return today + timedelta(days=7)
    if "month" in lowered:
        return today + relativedelta(months=1)

    try:
        return parse_absolute_date(hint, today)
    except DueDateParseError:
        logger.warning(f"Could not parse due date '{hint}', defaulting to {DEFAULT_DUE_DAYS} days")
        return today + timedelta(days=DEFAULT_DUE_DAYS)
