"""
Per-session form state for the dashboard.

Holds the Jira tasks, calendar events and unavailable hours the user has
added or fetched, plus the last generated schedule. Everything lives in
process memory and is lost on restart.
"""
import logging
import re
import threading
import uuid
from collections import OrderedDict

from pydantic import ValidationError

from weekwise import config
from weekwise.errors import InvalidInputError
from weekwise.helpers import ends_after, group_schedule_by_day, hhmm_ends_after, is_valid_datetime
from weekwise.schemas import CalendarEvent, GenerateScheduleInput, JiraTask, UnavailableHour

logger = logging.getLogger(__name__)

DEFAULT_UNAVAILABLE_HOURS = [
    {'id': 'mon-default', 'dayOfWeek': 'Monday', 'startTime': '08:00', 'endTime': '19:00'},
    {'id': 'tue-default', 'dayOfWeek': 'Tuesday', 'startTime': '07:00', 'endTime': '21:00'},
    {'id': 'wed-default', 'dayOfWeek': 'Wednesday', 'startTime': '07:00', 'endTime': '22:00'},
    {'id': 'thu-default', 'dayOfWeek': 'Thursday', 'startTime': '08:00', 'endTime': '21:00'},
    {'id': 'fri-default', 'dayOfWeek': 'Friday', 'startTime': '08:00', 'endTime': '13:00'},
]


ISSUE_KEY_PATTERN = re.compile(r'/browse/([A-Za-z][A-Za-z0-9_]*)-\d+')


def project_key_from_link(link):
    """Project key of a Jira issue link such as .../browse/KAN-101, else 'MANUAL'."""
    match = ISSUE_KEY_PATTERN.search(link)
    return match.group(1).upper() if match else 'MANUAL'


def _new_id():
    return str(uuid.uuid4())


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _with_id(model):
    entry = {'id': _new_id()}
    entry.update(model.to_wire())
    return entry


def _without_id(entry):
    return {key: value for key, value in entry.items() if key != 'id'}


def _build(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__}: {e}")


class Workspace:
    def __init__(self):
        self.jira_tasks = []
        self.calendar_events = []
        self.unavailable_hours = [dict(window) for window in DEFAULT_UNAVAILABLE_HOURS]
        self.schedule = {}

    # -------------------------------
    # Jira tasks
    # -------------------------------
    def add_jira_task(self, data):
        name = _strip(data.get('name')) or ''
        link = _strip(data.get('link')) or ''
        if not name or not link:
            raise InvalidInputError("A Jira task needs both a name and a link.")

        task = _build(JiraTask, {
            'name': name,
            'link': link,
            'deadline': _strip(data.get('deadline')) or None,
            'projectKey': _strip(data.get('projectKey')) or project_key_from_link(link),
        })
        entry = _with_id(task)
        self.jira_tasks.append(entry)
        return entry

    def replace_jira_tasks(self, tasks):
        self.jira_tasks = [_with_id(task) for task in tasks]
        return self.jira_tasks

    def remove_jira_task(self, item_id):
        self.jira_tasks = self._remove(self.jira_tasks, item_id, 'Jira task')

    # -------------------------------
    # Calendar events
    # -------------------------------
    def add_calendar_event(self, data):
        name = _strip(data.get('name')) or ''
        start_time = _strip(data.get('startTime'))
        end_time = _strip(data.get('endTime'))
        if not name or not start_time or not end_time:
            raise InvalidInputError("A calendar event needs a name, a start time and an end time.")
        if not is_valid_datetime(start_time) or not is_valid_datetime(end_time):
            raise InvalidInputError("Please enter valid start and end times.")
        if not ends_after(start_time, end_time):
            raise InvalidInputError("End time must be after start time.")

        event = _build(CalendarEvent, {
            'name': name,
            'startTime': start_time,
            'endTime': end_time,
            'link': _strip(data.get('link')) or None,
        })
        entry = _with_id(event)
        self.calendar_events.append(entry)
        return entry

    def replace_calendar_events(self, events):
        self.calendar_events = [_with_id(event) for event in events]
        return self.calendar_events

    def remove_calendar_event(self, item_id):
        self.calendar_events = self._remove(self.calendar_events, item_id, 'Calendar event')

    # -------------------------------
    # Unavailable hours
    # -------------------------------
    def add_unavailable_hour(self, data):
        start_time = _strip(data.get('startTime')) or ''
        end_time = _strip(data.get('endTime')) or ''
        if not start_time or not end_time:
            raise InvalidInputError("Please provide both a start and an end time.")

        window = _build(UnavailableHour, {
            'dayOfWeek': data.get('dayOfWeek'),
            'startTime': start_time,
            'endTime': end_time,
        })
        if not hhmm_ends_after(window.start_time, window.end_time):
            raise InvalidInputError("End time must be after start time.")

        entry = _with_id(window)
        self.unavailable_hours.append(entry)
        return entry

    def remove_unavailable_hour(self, item_id):
        self.unavailable_hours = self._remove(self.unavailable_hours, item_id, 'Unavailable hour')

    # -------------------------------
    # Schedule
    # -------------------------------
    def schedule_input(self, current_date):
        """The generate_schedule input built from the current form state."""
        return GenerateScheduleInput(
            current_date=current_date,
            manual_jira_tasks=[JiraTask.model_validate(_without_id(task)) for task in self.jira_tasks],
            manual_calendar_events=[CalendarEvent.model_validate(_without_id(event))
                                    for event in self.calendar_events],
            unavailable_hours=[UnavailableHour.model_validate(_without_id(window))
                               for window in self.unavailable_hours],
        )

    def set_schedule(self, output):
        """
        Store a generated schedule grouped by day.

        Jira items are linked back to the workspace task with the same name
        through 'originalId', which the feedback dialog sends as jiraItemId.
        """
        task_ids = {task['name']: task['id'] for task in self.jira_tasks}
        items = []
        for item in output.schedule:
            entry = item.to_wire()
            if item.type == 'jira' and item.name in task_ids:
                entry['originalId'] = task_ids[item.name]
            items.append(entry)
        self.schedule = group_schedule_by_day(items)
        return self.schedule

    def clear_schedule(self):
        self.schedule = {}

    def to_dict(self):
        return {
            'jiraTasks': self.jira_tasks,
            'calendarEvents': self.calendar_events,
            'unavailableHours': self.unavailable_hours,
            'schedule': self.schedule,
        }

    @staticmethod
    def _remove(entries, item_id, label):
        remaining = [entry for entry in entries if entry['id'] != item_id]
        if len(remaining) == len(entries):
            raise InvalidInputError(f"{label} '{item_id}' not found.", status_code=404)
        return remaining


# In-memory storage, one workspace per browser session, least recently used evicted first
_WORKSPACES = OrderedDict()
_LOCK = threading.Lock()


def get_workspace(workspace_id):
    with _LOCK:
        workspace = _WORKSPACES.get(workspace_id)
        if workspace is None:
            logger.info(f"Creating workspace {workspace_id}")
            workspace = Workspace()
            _WORKSPACES[workspace_id] = workspace
        else:
            _WORKSPACES.move_to_end(workspace_id)

        while len(_WORKSPACES) > config.MAX_WORKSPACES:
            evicted_id, _ = _WORKSPACES.popitem(last=False)
            logger.info(f"Evicting workspace {evicted_id}")
        return workspace


def reset_workspaces():
    """Drop every stored workspace."""
    with _LOCK:
        _WORKSPACES.clear()
