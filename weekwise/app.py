from flask import Flask, request, jsonify, render_template, session, redirect, url_for
from flask_cors import CORS
import logging
import uuid
from datetime import date
from functools import wraps

from weekwise import config, flows
from weekwise.errors import InvalidInputError, WeekWiseError
from weekwise.helpers import format_clock, is_overdue, parse_date, week_days, week_title
from weekwise.schemas import ALL_DAYS_OF_WEEK
from weekwise.workspace import Workspace, get_workspace

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.get_secret_key()
CORS(app)  # Enable CORS for all routes


# -------------------------------
# Request Helpers
# -------------------------------
def handle_errors(f):
    """Turn flow errors into JSON error responses the dashboard shows as toasts."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except WeekWiseError as e:
            logger.error(f"{f.__name__} failed: {e.message}")
            return jsonify(e.to_dict()), e.status_code
        except Exception as e:
            logger.error(f"Unexpected error in {f.__name__}: {str(e)}", exc_info=True)
            return jsonify({'error': str(e)}), 500
    return decorated_function


def current_workspace(create=True):
    """The session's workspace. Read-only callers pass create=False so cookie-less clients store nothing."""
    if 'workspace_id' not in session:
        if not create:
            return Workspace()
        session['workspace_id'] = str(uuid.uuid4())
    return get_workspace(session['workspace_id'])


def get_json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object.")
    return data


def get_start_date(data):
    value = data.get('currentDate') or data.get('startDate')
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"'{value}' is not a date in YYYY-MM-DD format.")


def describe_days(start_date):
    today = date.today()
    return [{
        'key': day.isoformat(),
        'weekday': day.strftime('%a'),
        'label': f"{day.strftime('%b')} {day.day}",
        'isToday': day == today,
    } for day in week_days(start_date)]


def present_schedule(grouped):
    """Add the display fields the item cards need."""
    presented = {}
    for day_key, items in grouped.items():
        presented[day_key] = [dict(
            item,
            timeLabel=f"{format_clock(item['startTime'])} - {format_clock(item['endTime'])}",
            overdue=item.get('type') == 'jira' and is_overdue(item.get('deadline')),
        ) for item in items]
    return presented


def workspace_state(workspace):
    state = workspace.to_dict()
    state['schedule'] = present_schedule(state['schedule'])
    return state


# -------------------------------
# Pages
# -------------------------------
@app.route('/')
def index():
    return redirect(url_for('dashboard'))


@app.route('/dashboard')
def dashboard():
    start_date = date.today()
    return render_template(
        'dashboard.html',
        current_date=start_date.isoformat(),
        week_title=week_title(start_date),
        days=describe_days(start_date),
        days_of_week=ALL_DAYS_OF_WEEK,
    )


@app.route('/health', methods=['GET'])
def health():
    llm_config = config.get_llm_config()
    return jsonify({
        'status': 'healthy',
        'llm_provider': llm_config['provider'],
        'llm_model': llm_config['model'],
    }), 200


# -------------------------------
# Workspace Endpoints
# -------------------------------
@app.route('/api/workspace', methods=['GET'])
@handle_errors
def get_workspace_state():
    return jsonify(workspace_state(current_workspace(create=False)))


@app.route('/api/jira-tasks', methods=['POST'])
@handle_errors
def add_jira_task():
    workspace = current_workspace()
    entry = workspace.add_jira_task(get_json_body())
    return jsonify({'task': entry, 'jiraTasks': workspace.jira_tasks}), 201


@app.route('/api/jira-tasks/<item_id>', methods=['DELETE'])
@handle_errors
def remove_jira_task(item_id):
    workspace = current_workspace()
    workspace.remove_jira_task(item_id)
    return jsonify({'jiraTasks': workspace.jira_tasks})


@app.route('/api/jira-tasks/fetch', methods=['POST'])
@handle_errors
def fetch_jira_tasks():
    workspace = current_workspace()
    tasks = flows.fetch_jira_tasks()
    workspace.replace_jira_tasks(tasks)
    return jsonify({
        'jiraTasks': workspace.jira_tasks,
        'message': f"Successfully fetched {len(tasks)} tasks from Jira."
    })


@app.route('/api/calendar-events', methods=['POST'])
@handle_errors
def add_calendar_event():
    workspace = current_workspace()
    entry = workspace.add_calendar_event(get_json_body())
    return jsonify({'event': entry, 'calendarEvents': workspace.calendar_events}), 201


@app.route('/api/calendar-events/<item_id>', methods=['DELETE'])
@handle_errors
def remove_calendar_event(item_id):
    workspace = current_workspace()
    workspace.remove_calendar_event(item_id)
    return jsonify({'calendarEvents': workspace.calendar_events})


@app.route('/api/calendar-events/fetch', methods=['POST'])
@handle_errors
def fetch_calendar_events():
    workspace = current_workspace()
    start_date = get_start_date(get_json_body())
    events = flows.fetch_google_calendar_events(start_date)
    workspace.replace_calendar_events(events)
    return jsonify({
        'calendarEvents': workspace.calendar_events,
        'message': f"Successfully fetched {len(events)} events."
    })


@app.route('/api/unavailable-hours', methods=['POST'])
@handle_errors
def add_unavailable_hour():
    workspace = current_workspace()
    entry = workspace.add_unavailable_hour(get_json_body())
    return jsonify({'unavailableHour': entry, 'unavailableHours': workspace.unavailable_hours}), 201


@app.route('/api/unavailable-hours/<item_id>', methods=['DELETE'])
@handle_errors
def remove_unavailable_hour(item_id):
    workspace = current_workspace()
    workspace.remove_unavailable_hour(item_id)
    return jsonify({'unavailableHours': workspace.unavailable_hours})


# -------------------------------
# Schedule Endpoints
# -------------------------------
@app.route('/api/generate-schedule', methods=['POST'])
@handle_errors
def generate_schedule():
    workspace = current_workspace()
    start_date = get_start_date(get_json_body())
    workspace.clear_schedule()

    output = flows.generate_schedule(workspace.schedule_input(start_date.isoformat()))
    grouped = workspace.set_schedule(output)
    logger.info(f"Generated schedule with {len(output.schedule)} items over {len(grouped)} days")

    return jsonify({
        'schedule': [item.to_wire() for item in output.schedule],
        'grouped': present_schedule(grouped),
        'days': describe_days(start_date),
        'weekTitle': week_title(start_date),
        'message': "Your 7-day schedule has been successfully created."
    })


@app.route('/api/learn', methods=['POST'])
@handle_errors
def learn():
    data = get_json_body()
    if not data.get('jiraItemId'):
        raise InvalidInputError("Jira item information is missing.")

    # Jira items are always planned as 1-hour blocks
    feedback = {
        'jiraItemId': data['jiraItemId'],
        'estimatedTime': 1,
        'actualTime': data.get('actualTime'),
        'manualAdjustments': (data.get('manualAdjustments') or '').strip() or None,
    }
    result = flows.learn_schedule_patterns(feedback)
    return jsonify(result.to_wire())


def main():
    app.run(host='0.0.0.0', port=config.PORT, debug=config.DEBUG)


if __name__ == '__main__':
    main()
