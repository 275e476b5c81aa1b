"""
Audit Log Tests

Covers best-effort inserts, per-field change logging, relative timestamps
and the read-only API.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from .models import Log
from .services import format_timestamp, insert_log, log_field_changes


class InsertLogTests(TestCase):
    def test_insert_log_creates_entry(self):
        result = insert_log(
            reference_id=7,
            reference_type=Log.ReferenceType.CLASS,
            action_type=Log.ActionType.CLASS_CREATED,
            class_id=7,
        )
        self.assertTrue(result.success)
        entry = Log.objects.get(id=result.data["log_id"])
        self.assertEqual(entry.reference_id, "7")
        self.assertIsNone(entry.admin_user)

    def test_insert_log_failure_is_swallowed(self):
        with mock.patch.object(Log.objects, "create", side_effect=DatabaseError("boom")):
            result = insert_log(
                reference_id=1,
                reference_type=Log.ReferenceType.CLASS,
                action_type=Log.ActionType.CLASS_DELETED,
            )
        self.assertFalse(result.success)
        self.assertEqual(result.error, "boom")

    def test_log_field_changes_only_writes_changed_fields(self):
        written = log_field_changes(
            reference_id=3,
            reference_type=Log.ReferenceType.CLASS,
            old_values={"location": "Room A", "price": 1000, "is_online": False},
            new_values={"location": "Room B", "price": 1000, "is_online": False},
            fields=["location", "price", "is_online"],
            class_id=3,
        )
        self.assertEqual(written, 1)
        entry = Log.objects.get()
        self.assertEqual(entry.field_name, "location")
        self.assertEqual(entry.old_value, "Room A")
        self.assertEqual(entry.new_value, "Room B")
        self.assertIsNotNone(entry.batch_id)


class FormatTimestampTests(TestCase):
    def setUp(self):
        self.now = datetime(2025, 3, 20, 12, 0, 0, tzinfo=dt_timezone.utc)

    def test_recent_values(self):
        self.assertEqual(format_timestamp(self.now - timedelta(seconds=2), self.now), "just now")
        self.assertEqual(format_timestamp(self.now - timedelta(seconds=30), self.now), "30 seconds ago")
        self.assertEqual(format_timestamp(self.now - timedelta(minutes=1), self.now), "1 minute ago")
        self.assertEqual(format_timestamp(self.now - timedelta(hours=5), self.now), "5 hours ago")
        self.assertEqual(format_timestamp(self.now - timedelta(days=2), self.now), "2 days ago")

    def test_older_values_use_calendar_date(self):
        older = datetime(2025, 1, 15, 12, 0, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(format_timestamp(older, self.now), "Jan 15, 2025")


class LogApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="admin", password="Musterpassword", is_staff=True
        )
        insert_log(
            reference_id=1,
            reference_type=Log.ReferenceType.CLASS,
            action_type=Log.ActionType.CLASS_CREATED,
            class_id=1,
        )
        insert_log(
            reference_id=2,
            reference_type=Log.ReferenceType.STUDENT,
            action_type=Log.ActionType.STUDENT_REGISTERED,
            student_id=2,
        )

    def setUp(self):
        self.client = APIClient()

    def test_requires_admin(self):
        response = self.client.get("/api/logs/")
        self.assertEqual(response.status_code, 401)

    def test_filter_by_reference_type(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get("/api/logs/", {"reference_type": "student"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["action_type"], "student_registered")
