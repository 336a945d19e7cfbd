import os
import time
import unittest
from contextlib import contextmanager
from datetime import date
from unittest.mock import patch

from weekwise.helpers import (
    dedupe_by_name,
    ends_after,
    format_clock,
    group_schedule_by_day,
    hhmm_ends_after,
    is_overdue,
    is_valid_datetime,
    week_days,
    week_title,
)
from weekwise.schemas import JiraTask


@contextmanager
def local_timezone(name):
    try:
        with patch.dict(os.environ, {'TZ': name}):
            time.tzset()
            yield
    finally:
        time.tzset()


class TestDedupeByName(unittest.TestCase):
    def test_last_seen_wins_and_first_position_is_kept(self):
        tasks = [
            JiraTask(name='A', link='https://jira/browse/A-1', project_key='A'),
            JiraTask(name='B', link='https://jira/browse/B-1', project_key='B'),
            JiraTask(name='A', link='https://jira/browse/A-2', project_key='A'),
        ]
        unique = dedupe_by_name(tasks)

        self.assertEqual([t.name for t in unique], ['A', 'B'])
        self.assertEqual(unique[0].link, 'https://jira/browse/A-2')

    def test_empty(self):
        self.assertEqual(dedupe_by_name([]), [])


class TestGroupScheduleByDay(unittest.TestCase):
    def test_one_sorted_list_per_date(self):
        items = [
            {'name': 'late wed', 'startTime': '2025-06-04T15:00:00', 'endTime': '2025-06-04T16:00:00'},
            {'name': 'early tue', 'startTime': '2025-06-03T08:00:00', 'endTime': '2025-06-03T09:00:00'},
            {'name': 'early wed', 'startTime': '2025-06-04T09:00:00', 'endTime': '2025-06-04T10:00:00'},
            {'name': 'late tue', 'startTime': '2025-06-03T17:30:00', 'endTime': '2025-06-03T18:00:00'},
            {'name': 'fri', 'startTime': '2025-06-06T12:00:00', 'endTime': '2025-06-06T13:00:00'},
        ]
        grouped = group_schedule_by_day(items)

        self.assertEqual(sorted(grouped), ['2025-06-03', '2025-06-04', '2025-06-06'])
        self.assertEqual([i['name'] for i in grouped['2025-06-03']], ['early tue', 'late tue'])
        self.assertEqual([i['name'] for i in grouped['2025-06-04']], ['early wed', 'late wed'])
        self.assertEqual([i['name'] for i in grouped['2025-06-06']], ['fri'])

    def test_equal_start_times_keep_input_order(self):
        items = [
            {'name': 'first', 'startTime': '2025-06-03T09:00:00Z', 'endTime': '2025-06-03T10:00:00Z'},
            {'name': 'second', 'startTime': '2025-06-03T09:00:00Z', 'endTime': '2025-06-03T09:30:00Z'},
        ]
        with local_timezone('UTC'):
            grouped = group_schedule_by_day(items)
        self.assertEqual([i['name'] for i in grouped['2025-06-03']], ['first', 'second'])

    def test_offsets_compare_as_instants(self):
        items = [
            {'name': 'b', 'startTime': '2025-06-03T10:00:00+02:00', 'endTime': '2025-06-03T11:00:00+02:00'},
            {'name': 'a', 'startTime': '2025-06-03T07:30:00Z', 'endTime': '2025-06-03T08:00:00Z'},
        ]
        with local_timezone('UTC'):
            grouped = group_schedule_by_day(items)
        # 10:00+02:00 is 08:00 UTC, after 07:30 UTC
        self.assertEqual([i['name'] for i in grouped['2025-06-03']], ['a', 'b'])

    def test_utc_times_land_on_the_local_day(self):
        items = [
            {'name': 'tokyo morning', 'startTime': '2025-06-03T20:00:00Z', 'endTime': '2025-06-03T21:00:00Z'},
            {'name': 'naive', 'startTime': '2025-06-03T20:00:00', 'endTime': '2025-06-03T21:00:00'},
        ]
        with local_timezone('Asia/Tokyo'):
            grouped = group_schedule_by_day(items)
            label = format_clock('2025-06-03T20:00:00Z')

        # 20:00 UTC is 05:00 the next day in Tokyo; naive times are already local
        self.assertEqual(sorted(grouped), ['2025-06-03', '2025-06-04'])
        self.assertEqual([i['name'] for i in grouped['2025-06-04']], ['tokyo morning'])
        self.assertEqual([i['name'] for i in grouped['2025-06-03']], ['naive'])
        self.assertEqual(label, '05:00')


class TestTimeHelpers(unittest.TestCase):
    def test_is_valid_datetime(self):
        self.assertTrue(is_valid_datetime('2025-06-03T09:00'))
        self.assertTrue(is_valid_datetime('2025-06-03T09:00:00.000Z'))
        self.assertFalse(is_valid_datetime('tomorrow'))
        self.assertFalse(is_valid_datetime(''))
        self.assertFalse(is_valid_datetime(None))

    def test_ends_after(self):
        self.assertTrue(ends_after('2025-06-03T09:00', '2025-06-03T10:00'))
        self.assertFalse(ends_after('2025-06-03T09:00', '2025-06-03T09:00'))
        self.assertFalse(ends_after('2025-06-03T10:00', '2025-06-03T09:00'))

    def test_hhmm_ends_after(self):
        self.assertTrue(hhmm_ends_after('09:00', '17:30'))
        self.assertFalse(hhmm_ends_after('09:30', '09:30'))
        self.assertFalse(hhmm_ends_after('18:00', '9:00'))

    def test_is_overdue(self):
        today = date(2025, 6, 3)
        self.assertTrue(is_overdue('2025-06-02', today))
        self.assertFalse(is_overdue('2025-06-03', today))
        self.assertFalse(is_overdue(None, today))
        self.assertFalse(is_overdue('not a date', today))

    def test_format_clock(self):
        self.assertEqual(format_clock('2025-06-03T09:05:00'), '09:05')
        self.assertEqual(format_clock('garbage'), 'garbage')

    def test_week(self):
        days = week_days(date(2024, 12, 30))
        self.assertEqual(len(days), 7)
        self.assertEqual(days[-1], date(2025, 1, 5))
        self.assertEqual(week_title(date(2024, 12, 30)), 'Dec 30 - Jan 5, 2025')


if __name__ == '__main__':
    unittest.main()
