"""
Schedule Generation Prompts
This module contains the prompt templates sent to the LLM for schedule
generation and for learning from user feedback.
"""
import json


def _format_jira_tasks(tasks):
    if not tasks:
        return "- No Jira tasks provided or fetched.\n"
    text = ""
    for task in tasks:
        line = f"- Name: {task.name}, Project: {task.project_key}"
        if task.link:
            line += f", Link: {task.link}"
        if task.deadline:
            line += f", Deadline: {task.deadline}"
        text += line + "\n"
    return text


def _format_calendar_events(events):
    if not events:
        return "- No calendar events provided or fetched.\n"
    text = ""
    for event in events:
        line = f"- Name: {event.name}, Start Time: {event.start_time}, End Time: {event.end_time}"
        if event.link:
            line += f", Link: {event.link}"
        text += line + "\n"
    return text


def _format_unavailable_hours(unavailable_hours):
    text = ""
    for window in unavailable_hours:
        text += f"- Day: {window.day_of_week}, Start Time: {window.start_time}, End Time: {window.end_time}\n"
    return text


def get_schedule_prompt(current_date, jira_tasks, calendar_events, unavailable_hours, output_schema):
    """
    Create the prompt asking the LLM for a balanced 7-day schedule.

    Args:
        current_date: First day of the schedule, YYYY-MM-DD
        jira_tasks: Deduplicated JiraTask list
        calendar_events: Deduplicated CalendarEvent list
        unavailable_hours: UnavailableHour list
        output_schema: JSON schema dict the reply must follow

    Returns:
        String prompt for the LLM
    """
    prompt = f"""You are an AI scheduling assistant. Your goal is to create a balanced 7-day schedule for the user, starting from {current_date}.
You need to integrate their Jira tasks and Google Calendar appointments, while respecting their unavailable hours and task deadlines.

Current Date for planning: {current_date}

User's Jira tasks to schedule (each Jira task should be allocated 1 hour):
{_format_jira_tasks(jira_tasks)}
User's Google Calendar appointments to schedule:
{_format_calendar_events(calendar_events)}
User's unavailable hours (these are times they CANNOT work or have events):
{_format_unavailable_hours(unavailable_hours)}
Create a 7-day schedule starting from {current_date}.
- Each Jira task must be scheduled for a 1-hour block.
- Calendar events must be scheduled at their specified times.
- For each scheduled item, you must include its original name in the 'name' field.
- For each scheduled Jira item, you must include its 'projectKey' in the output.
- When scheduling a Jira task, you MUST copy its original 'deadline' from the input data to the 'deadline' field in the output JSON if one exists.
- Unavailable hours must be respected.
- Ensure the output times are in ISO 8601 format.
- Prioritize scheduling existing calendar events first.
- Next, you MUST schedule tasks to be completed before their specified deadlines.
- If a task's deadline has already passed (the deadline is before {current_date}), you must schedule it as soon as possible, ignoring the rule about distributing tasks evenly.
- For all other tasks with deadlines, schedule them before their deadline while trying to distribute them throughout the week to create a balanced workload.
- For tasks with no deadline, distribute them evenly throughout available slots in the 7 days.

Return the schedule in the following JSON format:
{json.dumps(output_schema, indent=2)}
"""
    return prompt


def get_learning_prompt(feedback, output_schema):
    """
    Create the prompt asking the LLM whether a piece of feedback is informative.

    Args:
        feedback: LearningFeedback
        output_schema: JSON schema dict the reply must follow

    Returns:
        String prompt for the LLM
    """
    adjustments = feedback.manual_adjustments or "None provided"

    prompt = f"""You are an AI assistant that learns user scheduling patterns to improve future schedule accuracy.

You will analyze the provided data to understand the user's velocity of completing Jira items and the impact of manual schedule adjustments.

Based on the data, you will determine whether the learning process was successful and provide a message indicating the outcome.

Jira Item ID: {feedback.jira_item_id}
Estimated Time: {feedback.estimated_time:g} hours
Actual Time: {feedback.actual_time:g} hours
Manual Adjustments: {adjustments}

Consider these factors when determining success:
- Significant difference between estimated and actual time, indicating a need to adjust velocity estimates.
- Clear reasons for manual adjustments, suggesting predictable scheduling conflicts or preferences.

Return a JSON object with "success" set to true if the learning process resulted in valuable insights, and false otherwise. Include a descriptive "message" explaining the outcome.
The JSON object must follow this schema:
{json.dumps(output_schema, indent=2)}
"""
    return prompt
