"""
Jira REST client.

Fetches the user's open issues for the configured projects and maps them to
JiraTask records. JIRA_API_KEY=DEMO_JIRA_KEY returns sample data instead.
"""
import json
import logging
from datetime import date, timedelta

import requests

from weekwise.config import DEMO_JIRA_KEY, FETCH_TIMEOUT, get_jira_config
from weekwise.errors import AuthenticationError, ConfigurationError, UpstreamError
from weekwise.schemas import JiraTask

logger = logging.getLogger(__name__)

DEMO_INSTANCE_URL = 'https://jira.example.com'


def get_demo_tasks(instance_url=None, today=None):
    """Return the four canned demo tasks, deadlines relative to today."""
    instance = instance_url or DEMO_INSTANCE_URL
    today = today or date.today()
    return [
        JiraTask(name='[KAN] Design new dashboard (Demo Task)', link=f'{instance}/browse/KAN-101',
                 deadline=(today + timedelta(days=5)).isoformat(), project_key='KAN'),
        JiraTask(name='[KAN] Implement login feature (Demo Task)', link=f'{instance}/browse/KAN-102',
                 deadline=(today + timedelta(days=2)).isoformat(), project_key='KAN'),
        JiraTask(name='[SZH] Write API documentation (OVERDUE Demo Task)', link=f'{instance}/browse/SZH-103',
                 deadline=(today - timedelta(days=3)).isoformat(), project_key='SZH'),
        # No deadline
        JiraTask(name='[SZH] Deploy to staging (Demo Task)', link=f'{instance}/browse/SZH-104',
                 project_key='SZH'),
    ]


def build_jql(project_keys):
    quoted = ','.join(f'"{key}"' for key in project_keys)
    return f'project in ({quoted}) AND status != "DONE" ORDER BY created DESC'


def _error_details(response):
    """Best-effort extraction of Jira's error text from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or 'Could not retrieve error details.'
    if isinstance(body, dict) and body.get('errorMessages'):
        return ' '.join(body['errorMessages'])
    return json.dumps(body)


def issue_to_task(issue, instance_url):
    key = issue['key']
    fields = issue.get('fields') or {}
    return JiraTask(
        name=f"[{key}] {fields.get('summary', '')}",
        link=f'{instance_url}/browse/{key}',
        # Jira sends null for issues without a due date
        deadline=fields.get('duedate') or None,
        project_key=key.split('-')[0],
    )


def fetch_tasks():
    """
    Fetch open Jira issues for JIRA_PROJECT_KEY.

    Returns:
        List of JiraTask. Empty when the Jira settings are incomplete.

    Raises:
        AuthenticationError: on 401/403.
        ConfigurationError: on 400 (bad project key or JQL).
        UpstreamError: on any other failure status or a malformed payload.
    """
    config = get_jira_config()
    instance_url = config['instance_url']
    project_keys = config['project_keys']

    if config['api_key'] == DEMO_JIRA_KEY:
        logger.info("Returning demo Jira tasks (JIRA_API_KEY=DEMO_JIRA_KEY)")
        return get_demo_tasks(instance_url)

    if not config['user_email'] or not config['api_key'] or not instance_url or not project_keys:
        logger.warning("Jira environment variables (JIRA_USER_EMAIL, JIRA_API_KEY, JIRA_INSTANCE_URL, "
                       "JIRA_PROJECT_KEY) are not fully set. Cannot fetch Jira tasks.")
        return []

    logger.info(f"Fetching Jira tasks from {instance_url} for projects: {', '.join(project_keys)}")

    response = requests.get(
        f'{instance_url}/rest/api/latest/search',
        params={'jql': build_jql(project_keys), 'fields': 'summary,key,duedate'},
        auth=(config['user_email'], config['api_key']),
        headers={'Accept': 'application/json'},
        timeout=FETCH_TIMEOUT,
    )

    if not response.ok:
        details = _error_details(response)
        logger.error(f"Jira API error: {response.status_code} - {details}")

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Jira Authentication Failed (Status: {response.status_code}). "
                "Please check your JIRA_USER_EMAIL and JIRA_API_KEY in the .env file.")

        if response.status_code == 400:
            raise ConfigurationError(
                f"Jira Configuration Error: {details}. Please check your JIRA_PROJECT_KEY "
                f"('{','.join(project_keys)}') and JIRA_INSTANCE_URL.")

        raise UpstreamError(
            f"Jira API request failed with status {response.status_code}: {response.reason}. "
            f"Details: {details}. Check instance URL, project key(s), email, and API key/permissions.")

    try:
        data = response.json()
    except ValueError:
        raise UpstreamError(f"Jira API returned a non-JSON response: {response.text[:200]}")

    if 'issues' not in data:
        raise UpstreamError(f"Jira API response did not contain 'issues'. Response: {json.dumps(data)}")

    tasks = [issue_to_task(issue, instance_url) for issue in data['issues']]
    logger.info(f"Fetched {len(tasks)} Jira tasks")
    return tasks
