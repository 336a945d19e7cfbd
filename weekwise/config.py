import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Sentinel credentials that switch the fetchers to canned demo data
DEMO_JIRA_KEY = 'DEMO_JIRA_KEY'
DEMO_GCAL_KEY = 'DEMO_GCAL_KEY'

GOOGLE_CALENDAR_API_URL = 'https://www.googleapis.com/calendar/v3'

# Timeouts in seconds for outbound calls
FETCH_TIMEOUT = int(os.getenv('FETCH_TIMEOUT', 30))
LLM_TIMEOUT = int(os.getenv('LLM_TIMEOUT', 60))

# Flask settings
DEV_SECRET_KEY = 'weekwise-dev-secret'
PORT = int(os.getenv('PORT', 5002))
DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Upper bound on in-memory workspaces, one per browser session
MAX_WORKSPACES = int(os.getenv('MAX_WORKSPACES', 500))


def get_secret_key():
    """Flask session secret, falling back to a development key with a warning."""
    secret_key = os.getenv('FLASK_SECRET_KEY')
    if not secret_key:
        logger.warning("FLASK_SECRET_KEY is not set. Using the development secret key; "
                       "set FLASK_SECRET_KEY in the .env file before deploying.")
        return DEV_SECRET_KEY
    return secret_key


def get_jira_config():
    """
    Read the Jira connection settings from the environment.

    Read on every call so that .env edits and tests take effect without
    re-importing the module.
    """
    instance_url = os.getenv('JIRA_INSTANCE_URL')
    if instance_url:
        instance_url = instance_url.rstrip('/')

    project_keys = []
    raw_keys = os.getenv('JIRA_PROJECT_KEY')
    if raw_keys:
        project_keys = [key.strip() for key in raw_keys.split(',') if key.strip()]

    return {
        'user_email': os.getenv('JIRA_USER_EMAIL'),
        'api_key': os.getenv('JIRA_API_KEY'),
        'instance_url': instance_url,
        'project_keys': project_keys,
    }


def get_gcal_config():
    """Read the Google Calendar settings from the environment."""
    return {
        'api_key': os.getenv('GOOGLE_CALENDAR_API_KEY'),
        'calendar_id': os.getenv('GOOGLE_CALENDAR_ID') or 'primary',
    }


def get_llm_config():
    """Read the LLM provider settings from the environment."""
    provider = os.getenv('LLM_PROVIDER', 'openai').lower()
    default_model = 'gpt-4o-mini' if provider == 'openai' else 'claude-3-7-sonnet-20250219'
    return {
        'provider': provider,
        'model': os.getenv('LLM_MODEL', default_model),
        'openai_api_key': os.getenv('OPENAI_API_KEY'),
        'anthropic_api_key': os.getenv('ANTHROPIC_API_KEY'),
        'temperature': float(os.getenv('LLM_TEMPERATURE', 0.2)),
        'max_tokens': int(os.getenv('LLM_MAX_TOKENS', 4000)),
    }
