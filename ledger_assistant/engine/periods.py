"""
Period Calculation

Calendar windows for the dashboard: the selected month, the month before
it, and each credit card's billing cycle. Also the tolerant parsing of
`transaction_date` strings.

DESIGN DECISION: A date that cannot be parsed is not an error. The record
drops out of date-dependent views (year discovery, billing cycles, cash
window, timeline) quietly; unparseable_transactions() reports it once per
refresh. Category totals do not need a date and still count it.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import structlog

from ledger_assistant.models.ledger import CreditCard, Transaction
from ledger_assistant.models.report import DateWindow


logger = structlog.get_logger(__name__)

# Tried in order; the plain date format is applied to the first 10 chars.
ISO_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)
PLAIN_DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATE_FORMAT = "%Y/%m/%d"


# =============================================================================
# MONTH ARITHMETIC
# =============================================================================

def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move `delta` months from (year, month); crosses year boundaries."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def current_month_window(year: int, month: int) -> DateWindow:
    """[first day of month, first day of next month)."""
    next_year, next_month = shift_month(year, month, 1)
    return DateWindow(start=date(year, month, 1), end=date(next_year, next_month, 1))


def previous_month_window(year: int, month: int) -> DateWindow:
    """The month before (year, month); its end is the current month's start."""
    prev_year, prev_month = shift_month(year, month, -1)
    return current_month_window(prev_year, prev_month)


# =============================================================================
# BILLING CYCLES
# =============================================================================

def billing_date(year: int, month: int, billing_day: int) -> date:
    """
    The statement date of a card in a given month.

    Billing days past the end of the month clamp to its last day
    (31 -> Feb 28/29, 31 -> Apr 30).
    """
    day = min(max(billing_day, 1), days_in_month(year, month))
    return date(year, month, day)


def billing_cycle(year: int, month: int, billing_day: int) -> DateWindow:
    """
    The billing cycle that closes in (year, month).

    Inclusive on both ends: it starts the day after the previous
    statement date and ends on this month's statement date. For day 10 of
    March that is [Feb 11, Mar 10].
    """
    end = billing_date(year, month, billing_day)
    prev_year, prev_month = shift_month(year, month, -1)
    start = billing_date(prev_year, prev_month, billing_day) + timedelta(days=1)
    return DateWindow(start=start, end=end)


def billing_coverage_window(
    year: int,
    month: int,
    cards: Iterable[CreditCard],
) -> DateWindow:
    """
    Smallest half-open window holding the calendar month and every card's
    cycle for that month. Transactions outside it cannot affect the
    payment method totals.
    """
    month_window = current_month_window(year, month)
    start, end = month_window.start, month_window.end
    for card in cards:
        cycle = billing_cycle(year, month, card.billing_day)
        start = min(start, cycle.start)
        end = max(end, cycle.end + timedelta(days=1))
    return DateWindow(start=start, end=end)


# =============================================================================
# DATE PARSING
# =============================================================================

def parse_transaction_date(
    raw: Optional[str],
    transaction_id: Optional[str] = None,
    warn: bool = True,
) -> Optional[datetime]:
    """
    Parse a `transaction_date` value.

    Accepts ISO-8601 with fractional seconds, ISO-8601 without them, and
    anything whose first 10 characters are YYYY-MM-DD. Returns None when
    none of them match, logging a warning unless `warn` is off.
    """
    if raw is None or not raw.strip():
        if warn:
            logger.warning(
                "transaction_date_missing",
                transaction_id=transaction_id,
            )
        return None

    text = raw.strip()
    for fmt in ISO_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return datetime.strptime(text[:10], PLAIN_DATE_FORMAT)
    except ValueError:
        if warn:
            logger.warning(
                "transaction_date_unparseable",
                transaction_id=transaction_id,
                raw=raw,
            )
        return None


# The helpers below feed date-dependent views and skip bad dates quietly;
# unparseable_transactions() is where they get reported.

def transaction_day(raw: Optional[str]) -> Optional[date]:
    """Calendar date as recorded in the string (no timezone shifting)."""
    parsed = parse_transaction_date(raw, warn=False)
    return parsed.date() if parsed else None


def format_display_date(raw: Optional[str]) -> Optional[str]:
    day = transaction_day(raw)
    return day.strftime(DISPLAY_DATE_FORMAT) if day else None


def unparseable_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Transactions whose date cannot be parsed, each logged once.

    Repeated ids are reported once.
    """
    found = []
    seen = set()
    for tx in transactions:
        if tx.id is not None and tx.id in seen:
            continue
        if tx.id is not None:
            seen.add(tx.id)
        if parse_transaction_date(tx.transaction_date, tx.id) is None:
            found.append(tx)
    return found


def unparseable_dates(raw_dates: Iterable[Optional[str]]) -> list[str]:
    """Distinct non-empty date strings that cannot be parsed, each logged once."""
    found = []
    for raw in raw_dates:
        if not raw or raw in found:
            continue
        if parse_transaction_date(raw) is None:
            found.append(raw)
    return found


def available_years(
    raw_dates: Iterable[Optional[str]],
    today: Optional[date] = None,
) -> list[int]:
    """
    Years the user can navigate to: every year with a parseable
    transaction plus the current year, ascending.
    """
    today = today or date.today()
    years = {today.year}
    for raw in raw_dates:
        day = transaction_day(raw)
        if day is not None:
            years.add(day.year)
    return sorted(years)
