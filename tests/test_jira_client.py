import os
import unittest
from datetime import date, timedelta
from unittest.mock import MagicMock, patch

from weekwise import jira_client
from weekwise.errors import AuthenticationError, ConfigurationError, UpstreamError

JIRA_ENV = {
    'JIRA_USER_EMAIL': 'me@example.com',
    'JIRA_API_KEY': 'secret-token',
    'JIRA_INSTANCE_URL': 'https://acme.atlassian.net//',
    'JIRA_PROJECT_KEY': 'KAN, SZH',
}


def fake_response(status_code=200, json_data=None, text='', reason='OK'):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


class TestDemoMode(unittest.TestCase):
    def test_demo_key_returns_four_fixed_tasks(self):
        with patch.dict(os.environ, {'JIRA_API_KEY': 'DEMO_JIRA_KEY'}), \
                patch('weekwise.jira_client.requests.get') as mock_get:
            os.environ.pop('JIRA_INSTANCE_URL', None)
            tasks = jira_client.fetch_tasks()

        mock_get.assert_not_called()
        self.assertEqual(len(tasks), 4)
        self.assertEqual([t.name for t in tasks], [
            '[KAN] Design new dashboard (Demo Task)',
            '[KAN] Implement login feature (Demo Task)',
            '[SZH] Write API documentation (OVERDUE Demo Task)',
            '[SZH] Deploy to staging (Demo Task)',
        ])
        self.assertEqual([t.project_key for t in tasks], ['KAN', 'KAN', 'SZH', 'SZH'])
        self.assertEqual(tasks[0].link, 'https://jira.example.com/browse/KAN-101')
        self.assertIsNone(tasks[3].deadline)

    def test_demo_deadlines_are_relative_to_today(self):
        today = date(2025, 3, 10)
        tasks = jira_client.get_demo_tasks('https://jira.local', today=today)

        self.assertEqual(tasks[0].deadline, (today + timedelta(days=5)).isoformat())
        self.assertEqual(tasks[1].deadline, (today + timedelta(days=2)).isoformat())
        self.assertEqual(tasks[2].deadline, (today - timedelta(days=3)).isoformat())
        self.assertTrue(tasks[1].link.startswith('https://jira.local/browse/'))


class TestFetchTasks(unittest.TestCase):
    def test_missing_configuration_returns_empty_list(self):
        with patch.dict(os.environ, {'JIRA_API_KEY': 'secret-token'}), \
                patch('weekwise.jira_client.requests.get') as mock_get:
            for key in ('JIRA_USER_EMAIL', 'JIRA_INSTANCE_URL', 'JIRA_PROJECT_KEY'):
                os.environ.pop(key, None)
            tasks = jira_client.fetch_tasks()

        self.assertEqual(tasks, [])
        mock_get.assert_not_called()

    def test_maps_issues_and_builds_request(self):
        payload = {'issues': [
            {'key': 'KAN-7', 'fields': {'summary': 'Fix login', 'duedate': '2025-04-01'}},
            {'key': 'SZH-12', 'fields': {'summary': 'Write docs', 'duedate': None}},
        ]}
        with patch.dict(os.environ, JIRA_ENV), \
                patch('weekwise.jira_client.requests.get', return_value=fake_response(json_data=payload)) as mock_get:
            tasks = jira_client.fetch_tasks()

        url = mock_get.call_args[0][0]
        kwargs = mock_get.call_args[1]
        self.assertEqual(url, 'https://acme.atlassian.net/rest/api/latest/search')
        self.assertEqual(kwargs['params']['jql'],
                         'project in ("KAN","SZH") AND status != "DONE" ORDER BY created DESC')
        self.assertEqual(kwargs['params']['fields'], 'summary,key,duedate')
        self.assertEqual(kwargs['auth'], ('me@example.com', 'secret-token'))
        self.assertIn('timeout', kwargs)

        self.assertEqual(len(tasks), 2)
        self.assertEqual(tasks[0].name, '[KAN-7] Fix login')
        self.assertEqual(tasks[0].link, 'https://acme.atlassian.net/browse/KAN-7')
        self.assertEqual(tasks[0].deadline, '2025-04-01')
        self.assertEqual(tasks[0].project_key, 'KAN')
        self.assertIsNone(tasks[1].deadline)
        self.assertEqual(tasks[1].project_key, 'SZH')

    def test_unauthorized_raises_authentication_error(self):
        for status in (401, 403):
            with self.subTest(status=status):
                response = fake_response(status, json_data={'errorMessages': ['Nope']}, reason='Unauthorized')
                with patch.dict(os.environ, JIRA_ENV), \
                        patch('weekwise.jira_client.requests.get', return_value=response):
                    with self.assertRaises(AuthenticationError) as ctx:
                        jira_client.fetch_tasks()
                self.assertIn('JIRA_API_KEY', str(ctx.exception))
                self.assertIn(str(status), str(ctx.exception))

    def test_bad_request_raises_configuration_error(self):
        response = fake_response(400, json_data={'errorMessages': ["The value 'NOPE' does not exist"]},
                                 reason='Bad Request')
        with patch.dict(os.environ, JIRA_ENV), \
                patch('weekwise.jira_client.requests.get', return_value=response):
            with self.assertRaises(ConfigurationError) as ctx:
                jira_client.fetch_tasks()
        self.assertIn("The value 'NOPE' does not exist", str(ctx.exception))
        self.assertIn('KAN,SZH', str(ctx.exception))

    def test_other_failure_includes_status_and_body(self):
        response = fake_response(500, text='Internal boom', reason='Server Error')
        with patch.dict(os.environ, JIRA_ENV), \
                patch('weekwise.jira_client.requests.get', return_value=response):
            with self.assertRaises(UpstreamError) as ctx:
                jira_client.fetch_tasks()
        self.assertIn('status 500', str(ctx.exception))
        self.assertIn('Internal boom', str(ctx.exception))

    def test_payload_without_issues_is_an_error(self):
        with patch.dict(os.environ, JIRA_ENV), \
                patch('weekwise.jira_client.requests.get', return_value=fake_response(json_data={'total': 0})):
            with self.assertRaises(UpstreamError) as ctx:
                jira_client.fetch_tasks()
        self.assertIn("did not contain 'issues'", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
