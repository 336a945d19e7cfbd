from datetime import date, datetime, timedelta, timezone

# ===============================
# Input Aggregation
# ===============================

def dedupe_by_name(items):
    """
    Drop items sharing a name, keeping the last one seen.

    Order follows the first occurrence of each name, the way a dict keeps the
    original insertion slot when a key is overwritten.
    """
    unique = {}
    for item in items:
        unique[item.name] = item
    return list(unique.values())

# ===============================
# Time Related Functions
# ===============================

def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime, accepting a trailing 'Z'."""
    if value.endswith('Z') or value.endswith('z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def parse_date(value: str) -> date:
    return datetime.strptime(value, '%Y-%m-%d').date()


def _local(dt: datetime) -> datetime:
    # Aware values move to the local zone, naive values already are local
    return dt.astimezone() if dt.tzinfo else dt


def _instant(dt: datetime) -> datetime:
    # Naive values are taken as local time
    return dt.astimezone(timezone.utc)


def is_valid_datetime(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        parse_iso(value)
    except ValueError:
        return False
    return True


def ends_after(start: str, end: str) -> bool:
    """True when ISO datetime `end` is strictly after `start`."""
    return _instant(parse_iso(end)) > _instant(parse_iso(start))


def hhmm_ends_after(start: str, end: str) -> bool:
    """True when HH:mm `end` is strictly after HH:mm `start`."""
    start_h, start_m = map(int, start.split(':'))
    end_h, end_m = map(int, end.split(':'))
    return (end_h, end_m) > (start_h, start_m)


def is_overdue(deadline, today=None) -> bool:
    """True when a YYYY-MM-DD deadline is before today."""
    if not deadline:
        return False
    try:
        return parse_date(deadline) < (today or date.today())
    except ValueError:
        return False

# ===============================
# Schedule Presentation
# ===============================

def week_days(start_date: date):
    """The 7 dates of the week starting at `start_date`."""
    return [start_date + timedelta(days=offset) for offset in range(7)]


def week_title(start_date: date) -> str:
    end_date = start_date + timedelta(days=6)
    return f"{start_date.strftime('%b')} {start_date.day} - {end_date.strftime('%b')} {end_date.day}, {end_date.year}"


def group_schedule_by_day(items):
    """
    Bucket scheduled items by the local yyyy-MM-dd date of their startTime.

    Args:
        items: list of dicts with at least a 'startTime' key

    Returns:
        Dict of date string -> items on that date sorted ascending by
        startTime. Items with equal start times keep their input order.
    """
    grouped = {}
    for item in items:
        start = _local(parse_iso(item['startTime']))
        grouped.setdefault(start.strftime('%Y-%m-%d'), []).append(item)

    for day_key in grouped:
        grouped[day_key].sort(key=lambda entry: _instant(parse_iso(entry['startTime'])))
    return grouped


def format_clock(value: str) -> str:
    """Local HH:mm of an ISO datetime, as shown on the item cards."""
    try:
        return _local(parse_iso(value)).strftime('%H:%M')
    except ValueError:
        return value
