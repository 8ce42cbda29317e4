"""
Tests for user-filed reports and their review.

Test Coverage:
- Filing a report, including self-reports and unknown users
- Review status changes stamp the reviewer
- Report statistics
"""

import uuid

from django.test import TestCase

from core.exceptions import Forbidden, NotFound, ValidationError
from core.models import AuditLog, UserReport
from core.moderation import file_report
from core.services import ReportService
from core.transitions import update_report_status

from helpers import actor_for, make_user


def report_data(reported_user, **overrides):
    data = {
        'reported_user_id': reported_user.id,
        'report_type': 'caregiver_misconduct',
        'title': 'Left the kids alone',
        'description': 'The caregiver left two children unattended for an hour.',
        'severity': 'high',
        'evidence_urls': ['https://storage.example.com/evidence/1.jpg'],
    }
    data.update(overrides)
    return data


class FileReportTestCase(TestCase):
    """Test suite for file_report."""

    def setUp(self):
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver', name='Ana Cruz')

    def test_file_report(self):
        report = file_report(actor_for(self.parent), report_data(self.caregiver))

        self.assertEqual(report['status'], 'pending')
        self.assertEqual(report['severity'], 'high')
        self.assertEqual(report['reporter']['id'], self.parent.id)
        self.assertEqual(report['reported_user']['name'], 'Ana Cruz')
        self.assertIsNone(report['reviewed_by'])
        self.assertEqual(report['evidence_urls'], ['https://storage.example.com/evidence/1.jpg'])

    def test_filing_is_not_audited(self):
        file_report(actor_for(self.parent), report_data(self.caregiver))
        self.assertFalse(AuditLog.objects.exists())

    def test_cannot_report_yourself(self):
        with self.assertRaises(ValidationError):
            file_report(actor_for(self.parent), report_data(self.parent))
        self.assertFalse(UserReport.objects.exists())

    def test_unknown_reported_user(self):
        with self.assertRaises(NotFound):
            file_report(actor_for(self.parent), {
                'reported_user_id': uuid.uuid4(),
                'report_type': 'other',
                'title': 'Spam',
                'description': 'Sent spam messages.',
            })

    def test_required_fields(self):
        with self.assertRaises(ValidationError):
            file_report(actor_for(self.parent), report_data(self.caregiver, title=''))


class ReportReviewTestCase(TestCase):
    """Test suite for update_report_status."""

    def setUp(self):
        self.admin = make_user('admin', name='Grace Admin')
        self.actor = actor_for(self.admin)
        parent = make_user('parent')
        caregiver = make_user('caregiver')
        self.report = file_report(actor_for(parent), report_data(caregiver))

    def test_resolve_stamps_reviewer(self):
        report = update_report_status(
            self.report['id'], 'resolved', self.actor,
            admin_notes='Spoke with both parties', resolution='Caregiver warned',
        )

        self.assertEqual(report['status'], 'resolved')
        self.assertEqual(report['reviewed_by']['name'], 'Grace Admin')
        self.assertIsNotNone(report['reviewed_at'])
        self.assertEqual(report['admin_notes'], 'Spoke with both parties')
        self.assertEqual(report['resolution'], 'Caregiver warned')

        entry = AuditLog.objects.get(action='UPDATE_REPORT_STATUS')
        self.assertEqual(entry.metadata['from'], 'pending')
        self.assertEqual(entry.metadata['to'], 'resolved')
        self.assertEqual(entry.target_type, 'report')

    def test_any_status_may_follow_any_other(self):
        for status in ('resolved', 'under_review', 'dismissed', 'pending'):
            with self.subTest(status=status):
                report = update_report_status(self.report['id'], status, self.actor)
                self.assertEqual(report['status'], status)

    def test_notes_are_kept_when_omitted(self):
        update_report_status(self.report['id'], 'under_review', self.actor, admin_notes='Looking into it')
        report = update_report_status(self.report['id'], 'dismissed', self.actor)
        self.assertEqual(report['admin_notes'], 'Looking into it')

    def test_unknown_status(self):
        with self.assertRaises(ValidationError):
            update_report_status(self.report['id'], 'closed', self.actor)

    def test_unknown_report(self):
        with self.assertRaises(NotFound):
            update_report_status(uuid.uuid4(), 'resolved', self.actor)

    def test_requires_admin(self):
        with self.assertRaises(Forbidden):
            update_report_status(self.report['id'], 'resolved', actor_for(make_user('parent')))


class ReportStatsTestCase(TestCase):
    def test_stats(self):
        parent = make_user('parent')
        caregiver = make_user('caregiver')
        reporter = actor_for(parent)
        file_report(reporter, report_data(caregiver))
        file_report(reporter, report_data(caregiver, severity='low', report_type='payment_dispute'))

        stats = ReportService().stats()

        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['by_status']['pending'], 2)
        self.assertEqual(stats['by_severity'], {'low': 1, 'medium': 0, 'high': 1, 'critical': 0})
        self.assertEqual(stats['by_type']['payment_dispute'], 1)
        self.assertEqual(stats['by_type']['caregiver_misconduct'], 1)

    def test_list_filters(self):
        parent = make_user('parent')
        caregiver = make_user('caregiver')
        file_report(actor_for(parent), report_data(caregiver))
        file_report(actor_for(parent), report_data(caregiver, severity='critical'))

        self.assertEqual(ReportService().list({'severity': 'critical'})['total'], 1)
        self.assertEqual(ReportService().list({'reported_user_id': caregiver.id})['total'], 2)
        self.assertEqual(ReportService().list_by_reporter(parent.id)['total'], 2)
