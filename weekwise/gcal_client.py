"""
Google Calendar REST client.

Lists the events of a public calendar for the 7 days after a start date
using an API key. GOOGLE_CALENDAR_API_KEY=DEMO_GCAL_KEY returns sample data.
"""
import json
import logging
from datetime import datetime, time, timedelta
from urllib.parse import quote

import requests

from weekwise.config import DEMO_GCAL_KEY, FETCH_TIMEOUT, GOOGLE_CALENDAR_API_URL, get_gcal_config
from weekwise.errors import AuthenticationError, ConfigurationError, NotFoundError, UpstreamError
from weekwise.schemas import CalendarEvent

logger = logging.getLogger(__name__)

DEMO_EVENT_LINK = 'https://calendar.google.com'


def _local(day, hour):
    """Local wall-clock datetime on `day` at `hour`, with the local UTC offset attached."""
    return datetime.combine(day, time(hour)).astimezone()


def get_demo_events(start_date):
    """Two canned events: start+1 day 10:00 (1h) and start+3 days 14:00 (2h)."""
    first_start = _local(start_date + timedelta(days=1), 10)
    second_start = _local(start_date + timedelta(days=3), 14)
    return [
        CalendarEvent(
            name='Team Sync (Demo Event)',
            start_time=first_start.isoformat(),
            end_time=(first_start + timedelta(hours=1)).isoformat(),
            link=DEMO_EVENT_LINK,
        ),
        CalendarEvent(
            name='Project Planning (Demo Event)',
            start_time=second_start.isoformat(),
            end_time=(second_start + timedelta(hours=2)).isoformat(),
            link=DEMO_EVENT_LINK,
        ),
    ]


def item_to_event(item):
    start = item.get('start') or {}
    end = item.get('end') or {}
    return CalendarEvent(
        name=item.get('summary') or 'No Title',
        # All-day events only carry a date
        start_time=start.get('dateTime') or start.get('date'),
        end_time=end.get('dateTime') or end.get('date'),
        link=item.get('htmlLink'),
    )


def _raise_for_status(response, calendar_id):
    error = {}
    details = 'Could not retrieve error details.'
    try:
        error_json = response.json()
    except ValueError:
        if response.text:
            details = response.text
    else:
        if isinstance(error_json, dict) and isinstance(error_json.get('error'), dict):
            error = error_json['error']
        details = error.get('message') or json.dumps(error_json)

    logger.error(f"Google Calendar API error: {response.status_code} - {details}")

    if response.status_code == 403:
        reasons = [err.get('reason') for err in error.get('errors', []) if isinstance(err, dict)]
        if 'accessNotConfigured' in reasons:
            raise ConfigurationError(
                "Google Calendar API access is not configured. Please ensure the Calendar API is "
                "enabled in your Google Cloud project and the API key is correct.")
        raise AuthenticationError(
            "Google Calendar request failed with status 403 (Forbidden). "
            "Please check your GOOGLE_CALENDAR_API_KEY and its permissions.")

    if response.status_code == 401:
        raise AuthenticationError(
            "Google Calendar request failed with status 401 (Unauthorized). "
            "Please check your GOOGLE_CALENDAR_API_KEY.")

    if response.status_code == 404:
        raise NotFoundError(
            f"Google Calendar not found (404). This usually means the calendar with ID '{calendar_id}' "
            "is not shared publicly. For API Key access, please go to your Google Calendar settings for "
            "this specific calendar and ensure that 'Access permissions for events' is set to "
            "'Make available to public'.")

    raise UpstreamError(f"Google Calendar API request failed with status {response.status_code}: {details}")


def fetch_events(start_date):
    """
    Fetch the events in [start_date, start_date + 7 days).

    Args:
        start_date: datetime.date the week starts on.

    Returns:
        List of CalendarEvent, cancelled events skipped.
    """
    config = get_gcal_config()
    api_key = config['api_key']
    calendar_id = config['calendar_id']

    if api_key == DEMO_GCAL_KEY:
        logger.info(f"Returning demo events for calendar {calendar_id} (GOOGLE_CALENDAR_API_KEY=DEMO_GCAL_KEY)")
        return get_demo_events(start_date)

    if not api_key:
        raise ConfigurationError(
            "Google Calendar API key (GOOGLE_CALENDAR_API_KEY) is not set in the .env file. "
            "Cannot fetch events.")

    time_min = _local(start_date, 0)
    time_max = time_min + timedelta(days=7)

    logger.info(f"Fetching Google Calendar events for {calendar_id} from {time_min.isoformat()}")

    response = requests.get(
        f"{GOOGLE_CALENDAR_API_URL}/calendars/{quote(calendar_id, safe='')}/events",
        params={
            'key': api_key,
            'timeMin': time_min.isoformat(),
            'timeMax': time_max.isoformat(),
            'singleEvents': 'true',
            'orderBy': 'startTime',
        },
        headers={'Accept': 'application/json'},
        timeout=FETCH_TIMEOUT,
    )

    if not response.ok:
        _raise_for_status(response, calendar_id)

    try:
        data = response.json()
    except ValueError:
        raise UpstreamError(f"Google Calendar API returned a non-JSON response: {response.text[:200]}")

    items = data.get('items')
    if not items:
        return []

    events = [item_to_event(item) for item in items if item.get('status') != 'cancelled']
    logger.info(f"Fetched {len(events)} Google Calendar events")
    return events
