"""WeekWise: plan a 7-day work week from Jira tasks and Google Calendar events."""

__version__ = '0.1.0'
