"""
Server-side flows called by the dashboard.

Each flow wraps one external call (Jira, Google Calendar or the LLM),
validates what goes in and what comes out, and turns unexpected failures into
a WeekWiseError the UI can show.
"""
import logging
from datetime import date
from functools import wraps

import requests
from pydantic import ValidationError

from weekwise import gcal_client, jira_client, llm
from weekwise.errors import InvalidInputError, LLMResponseError, UpstreamError, WeekWiseError
from weekwise.helpers import dedupe_by_name, parse_date
from weekwise.schedule_prompts import get_learning_prompt, get_schedule_prompt
from weekwise.schemas import (
    GenerateScheduleInput,
    GenerateScheduleOutput,
    LearningFeedback,
    LearningResult,
)

logger = logging.getLogger(__name__)


def flow(description):
    """Log a flow's execution and normalise the errors it raises."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            logger.info(f"Entering {f.__name__}")
            try:
                result = f(*args, **kwargs)
            except WeekWiseError:
                raise
            except requests.exceptions.Timeout:
                logger.error(f"Timed out while {description}")
                raise UpstreamError(f"The request timed out while {description}.")
            except requests.exceptions.RequestException as e:
                logger.error(f"Network error while {description}: {str(e)}")
                raise UpstreamError(f"Network error while {description}: {str(e)}")
            except Exception as e:
                logger.error(f"Error while {description}: {str(e)}", exc_info=True)
                raise WeekWiseError(
                    f"An unknown error occurred while {description}. Check server logs and .env configuration.")
            logger.info(f"Exiting {f.__name__}")
            return result
        return decorated_function
    return decorator


def _validate(model, data):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__}: {e}")


@flow("fetching Jira tasks")
def fetch_jira_tasks():
    """Fetch open tasks from Jira. Returns [] when Jira is not configured."""
    return jira_client.fetch_tasks()


@flow("fetching Google Calendar events")
def fetch_google_calendar_events(start_date):
    """
    Fetch the Google Calendar events of the 7 days from `start_date`.

    Args:
        start_date: datetime.date or YYYY-MM-DD string
    """
    if not isinstance(start_date, date):
        try:
            start_date = parse_date(start_date)
        except (TypeError, ValueError):
            raise InvalidInputError(f"startDate must be a date in YYYY-MM-DD format, got '{start_date}'")
    return gcal_client.fetch_events(start_date)


@flow("generating the schedule")
def generate_schedule(data):
    """
    Ask the LLM for a 7-day schedule.

    Args:
        data: GenerateScheduleInput or its camelCase dict form

    Returns:
        GenerateScheduleOutput as returned by the LLM, shape-checked only.
    """
    schedule_input = _validate(GenerateScheduleInput, data)

    jira_tasks = dedupe_by_name(schedule_input.manual_jira_tasks or [])
    calendar_events = dedupe_by_name(schedule_input.manual_calendar_events or [])
    logger.info(f"Scheduling {len(jira_tasks)} Jira tasks and {len(calendar_events)} calendar events "
                f"from {schedule_input.current_date}")

    prompt = get_schedule_prompt(
        schedule_input.current_date,
        jira_tasks,
        calendar_events,
        schedule_input.unavailable_hours,
        GenerateScheduleOutput.model_json_schema(),
    )
    logger.debug(f"Schedule prompt:\n{prompt}")

    reply = llm.generate_json(prompt)
    try:
        return GenerateScheduleOutput.model_validate(reply)
    except ValidationError as e:
        logger.error(f"LLM schedule did not match the expected schema: {e}")
        raise LLMResponseError(f"The AI returned a schedule in an unexpected format: {e}")


@flow("learning from schedule feedback")
def learn_schedule_patterns(data):
    """
    Forward one piece of feedback to the LLM and return its verdict.

    Nothing is stored: every call is judged on its own.
    """
    feedback = _validate(LearningFeedback, data)
    prompt = get_learning_prompt(feedback, LearningResult.model_json_schema())

    reply = llm.generate_json(prompt)
    try:
        return LearningResult.model_validate(reply)
    except ValidationError as e:
        logger.error(f"LLM learning result did not match the expected schema: {e}")
        raise LLMResponseError(f"The AI returned feedback in an unexpected format: {e}")
