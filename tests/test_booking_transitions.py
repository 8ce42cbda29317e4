"""
Tests for booking status transitions.

Test Coverage:
- Named actions (confirm, start, complete, cancel) and their allowed states
- Cancelling twice fails the second time
- Direct status edges
- Derived total hours on booking rows
"""

from datetime import time
from decimal import Decimal

from django.test import TestCase

from core.exceptions import InvalidTransition, ValidationError
from core.models import AuditLog, Booking
from core.services import BookingService, compute_total_hours
from core.transitions import BOOKING_STATUSES, set_booking_status, transition_booking

from helpers import actor_for, make_booking, make_user

ALLOWED_FROM = {
    'confirm': {'pending'},
    'start': {'confirmed'},
    'complete': {'confirmed'},
    'cancel': {'pending', 'confirmed'},
}

TARGETS = {
    'confirm': 'confirmed',
    'start': 'confirmed',
    'complete': 'completed',
    'cancel': 'cancelled',
}


class BookingTransitionTestCase(TestCase):
    """Test suite for named booking actions."""

    def setUp(self):
        self.admin = make_user('admin')
        self.actor = actor_for(self.admin)
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver')

    def test_cancel_pending_booking_then_cancel_again(self):
        booking = make_booking(self.parent, self.caregiver)

        result = transition_booking(booking.id, 'cancel', self.actor, reason='Parent asked')

        self.assertEqual(result['status'], 'cancelled')
        entry = AuditLog.objects.get(target_id=str(booking.id))
        self.assertEqual(entry.action, 'CANCEL_BOOKING')
        self.assertEqual(entry.metadata['reason'], 'Parent asked')

        with self.assertRaises(InvalidTransition):
            transition_booking(booking.id, 'cancel', self.actor)
        self.assertEqual(AuditLog.objects.filter(target_id=str(booking.id)).count(), 1)

    def test_every_action_from_every_status(self):
        for action, allowed in ALLOWED_FROM.items():
            for current in BOOKING_STATUSES:
                with self.subTest(action=action, current=current):
                    booking = make_booking(self.parent, self.caregiver, status=current)
                    if current in allowed:
                        result = transition_booking(booking.id, action, self.actor)
                        self.assertEqual(result['status'], TARGETS[action])
                    else:
                        with self.assertRaises(InvalidTransition):
                            transition_booking(booking.id, action, self.actor)
                        booking.refresh_from_db()
                        self.assertEqual(booking.status, current)

    def test_start_records_without_changing_status(self):
        booking = make_booking(self.parent, self.caregiver, status='confirmed')

        result = transition_booking(booking.id, 'start', self.actor)

        self.assertEqual(result['status'], 'confirmed')
        entry = AuditLog.objects.get(target_id=str(booking.id))
        self.assertEqual(entry.action, 'START_BOOKING')
        self.assertEqual(entry.metadata['from'], 'confirmed')
        self.assertEqual(entry.metadata['to'], 'confirmed')

    def test_detail_includes_parties(self):
        booking = make_booking(self.parent, self.caregiver)
        result = transition_booking(booking.id, 'confirm', self.actor)
        self.assertEqual(result['parent']['id'], self.parent.id)
        self.assertEqual(result['caregiver']['id'], self.caregiver.id)
        self.assertIsNone(result['job'])

    def test_unknown_action(self):
        booking = make_booking(self.parent, self.caregiver)
        with self.assertRaises(ValidationError):
            transition_booking(booking.id, 'pause', self.actor)


class BookingDirectStatusTestCase(TestCase):
    def setUp(self):
        self.actor = actor_for(make_user('superadmin'))
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver')

    def test_allowed_edges(self):
        for current, target in [('pending', 'confirmed'), ('confirmed', 'completed'),
                                ('pending', 'cancelled'), ('confirmed', 'cancelled')]:
            with self.subTest(current=current, target=target):
                booking = make_booking(self.parent, self.caregiver, status=current)
                self.assertEqual(set_booking_status(booking.id, target, self.actor)['status'], target)

    def test_terminal_states_do_not_move(self):
        for current in ('completed', 'cancelled'):
            for target in BOOKING_STATUSES:
                with self.subTest(current=current, target=target):
                    booking = make_booking(self.parent, self.caregiver, status=current)
                    with self.assertRaises(InvalidTransition):
                        set_booking_status(booking.id, target, self.actor)

    def test_unknown_status(self):
        booking = make_booking(self.parent, self.caregiver)
        with self.assertRaises(ValidationError):
            set_booking_status(booking.id, 'started', self.actor)


class BookingHoursTestCase(TestCase):
    def setUp(self):
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver')

    def test_hours_from_clock_times(self):
        booking = make_booking(self.parent, self.caregiver, start_time=time(9, 0), end_time=time(13, 30))
        self.assertEqual(BookingService().find_by_id(booking.id)['total_hours'], 4.5)

    def test_stored_hours_win(self):
        booking = make_booking(self.parent, self.caregiver, total_hours=Decimal('6.00'))
        self.assertEqual(BookingService().find_by_id(booking.id)['total_hours'], 6.0)

    def test_missing_or_inverted_times(self):
        self.assertEqual(compute_total_hours({'start_time': '10:00', 'end_time': '09:00'}), 0)
        self.assertEqual(compute_total_hours({'start_time': None, 'end_time': '09:00'}), 0)
        self.assertEqual(compute_total_hours({'start_time': '08:15', 'end_time': '10:00'}), 1.75)

    def test_list_filters_by_status(self):
        make_booking(self.parent, self.caregiver, status='pending')
        make_booking(self.parent, self.caregiver, status='cancelled')
        page = BookingService().list({'status': 'cancelled'})
        self.assertEqual(page['total'], 1)
        self.assertEqual(Booking.objects.count(), 2)
