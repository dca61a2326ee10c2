# src/granular/core/query/timerange.py
"""Date and datetime keywords resolved into a range on the entity's time column."""

from datetime import date, datetime, time
from typing import Any, Callable, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from ..errors import InvalidInput
from ..logging import log
from ..models.predicates import TimeRange
from ..params import ParameterBag

DATE = "date"
DATE_FROM = "date_from"
DATE_TO = "date_to"
DATETIME_FROM = "datetime_from"
DATETIME_TO = "datetime_to"
TIME_COLUMN = "time_column"

TIME_KEYS = (TIME_COLUMN, DATE, DATE_FROM, DATE_TO, DATETIME_FROM, DATETIME_TO)


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInput(f"Unknown time zone '{name}'.") from None


def parse_instant(value: Any, zone: ZoneInfo) -> datetime:
    """Parse a date/datetime value; naive values are read in ``zone``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ParserError, ValueError, OverflowError):
            raise InvalidInput(f"Cannot parse '{value}' as a date or time.") from None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone)
    return parsed.astimezone(zone)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def resolve_time_range(
    params: ParameterBag,
    default_column: str,
    time_zone: str,
    columns: Iterable[str],
    now: Optional[Callable[[], datetime]] = None,
) -> Optional[TimeRange]:
    """Range filter requested by the date/datetime keywords, if any.

    ``date`` wins over ``date_from``/``date_to``, which win over
    ``datetime_from``/``datetime_to``. A missing upper bound means now.
    """
    known = set(columns)
    column = default_column
    override = params.get(TIME_COLUMN)
    if isinstance(override, str) and override in known:
        column = override
    elif override is not None:
        log.debug(f"Ignoring unknown time column '{override}'")

    if not any(params.filled(key) for key in (DATE, DATE_FROM, DATETIME_FROM)):
        return None

    if column not in known:
        log.debug(f"Time column '{column}' is not a table column, skipping time range")
        return None

    zone = get_zone(time_zone)
    current = (now() if now else datetime.now(zone)).astimezone(zone)

    if params.filled(DATE):
        day = parse_instant(params.get(DATE), zone)
        return TimeRange(column=column, start=start_of_day(day), end=end_of_day(day), timezone=time_zone)

    if params.filled(DATE_FROM):
        start = start_of_day(parse_instant(params.get(DATE_FROM), zone))
        end = end_of_day(parse_instant(params.get(DATE_TO), zone)) if params.filled(DATE_TO) else current
        return TimeRange(column=column, start=start, end=end, timezone=time_zone)

    start = parse_instant(params.get(DATETIME_FROM), zone)
    end = parse_instant(params.get(DATETIME_TO), zone) if params.filled(DATETIME_TO) else current
    return TimeRange(column=column, start=start, end=end, timezone=time_zone)
