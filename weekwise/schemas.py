"""
Data shapes passed between the fetchers, the flows and the LLM.

Field names are camelCase on the wire (JSON, prompts, templates) and
snake_case in Python.
"""
import re
from datetime import datetime
from typing import List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from weekwise.helpers import is_valid_datetime

DayOfWeek = Literal['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

ALL_DAYS_OF_WEEK = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

TIME_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$')


def _check_url(value):
    parsed = urlparse(value)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def _check_date(value):
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise ValueError(f"'{value}' is not a date in YYYY-MM-DD format")
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self):
        """Dump with camelCase keys and without unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class JiraTask(WireModel):
    name: str
    link: str
    deadline: Optional[str] = Field(default=None, description='The due date of the task in YYYY-MM-DD format.')
    project_key: str = Field(alias='projectKey', description='The project key of the task, e.g., "KAN".')

    @field_validator('link')
    @classmethod
    def validate_link(cls, v):
        return _check_url(v)

    @field_validator('deadline')
    @classmethod
    def validate_deadline(cls, v):
        if v is None:
            return v
        return _check_date(v)


class CalendarEvent(WireModel):
    name: str
    start_time: str = Field(alias='startTime', description='ISO 8601 start.')
    end_time: str = Field(alias='endTime', description='ISO 8601 end.')
    link: Optional[str] = None

    @field_validator('link')
    @classmethod
    def validate_link(cls, v):
        if v is None:
            return v
        return _check_url(v)


class UnavailableHour(WireModel):
    day_of_week: DayOfWeek = Field(alias='dayOfWeek')
    start_time: str = Field(alias='startTime')
    end_time: str = Field(alias='endTime')

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_time(cls, v):
        if not TIME_PATTERN.match(v):
            raise ValueError(f"'{v}' is not in HH:mm format")
        return v


class ScheduledItem(WireModel):
    name: str = Field(description='The full name of the event or task.')
    start_time: str = Field(alias='startTime', description='The start time of the event or task (ISO format).')
    end_time: str = Field(alias='endTime', description='The end time of the event or task (ISO format).')
    link: Optional[str] = Field(default=None, description='Link to original event resource. Must be a valid URL.')
    type: Literal['jira', 'calendar'] = Field(description='The type of the scheduled item.')
    project_key: Optional[str] = Field(
        default=None, alias='projectKey',
        description='For Jira tasks, the project key (e.g., "KAN", "SZH").')
    deadline: Optional[str] = Field(
        default=None, description='The deadline of the task in YYYY-MM-DD format, if applicable.')

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_iso(cls, v):
        if not is_valid_datetime(v):
            raise ValueError(f"'{v}' is not an ISO 8601 datetime")
        return v


class GenerateScheduleInput(WireModel):
    current_date: str = Field(alias='currentDate')
    manual_jira_tasks: Optional[List[JiraTask]] = Field(default=None, alias='manualJiraTasks')
    manual_calendar_events: Optional[List[CalendarEvent]] = Field(default=None, alias='manualCalendarEvents')
    unavailable_hours: List[UnavailableHour] = Field(alias='unavailableHours')

    @field_validator('current_date')
    @classmethod
    def validate_current_date(cls, v):
        return _check_date(v)


class GenerateScheduleOutput(WireModel):
    schedule: List[ScheduledItem] = Field(description='A 7-day schedule of tasks and events.')


class LearningFeedback(WireModel):
    jira_item_id: str = Field(alias='jiraItemId', description='The ID of the Jira item.')
    estimated_time: float = Field(
        default=1, alias='estimatedTime',
        description='The estimated time to complete the Jira item in hours.')
    actual_time: float = Field(
        alias='actualTime', gt=0,
        description='The actual time taken to complete the Jira item in hours.')
    manual_adjustments: Optional[str] = Field(
        default=None, alias='manualAdjustments',
        description='A description of any manual adjustments made to the schedule for this Jira item, and why.')


class LearningResult(WireModel):
    success: bool = Field(description='Whether the learning process was successful.')
    message: str = Field(description='A message indicating the outcome of the learning process.')
