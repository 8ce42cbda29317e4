"""
Tests for payment review and refunds.

Test Coverage:
- Proof review state on list and detail reads
- Status updates, notes requirements and same-status no-ops
- Refund rules
"""

from django.test import TestCase, override_settings

from core.exceptions import InvalidTransition, NotFound, ValidationError
from core.models import AuditLog, Payment
from core.proofs import NO_PROOF_ISSUE
from core.services import PaymentProofService, PaymentService
from core.transitions import refund_payment, update_payment_status

from helpers import actor_for, make_booking, make_payment, make_proof, make_user


class PaymentFixtureMixin:
    def setUp(self):
        self.admin = make_user('admin')
        self.actor = actor_for(self.admin)
        self.parent = make_user('parent', name='Maria Santos')
        self.caregiver = make_user('caregiver', name='Ana Cruz')
        self.booking = make_booking(self.parent, self.caregiver, status='completed')
        self.payment = make_payment(self.booking)


class PaymentProofReviewTestCase(PaymentFixtureMixin, TestCase):
    """Test suite for proof review on reads."""

    def test_payment_without_proofs_needs_review(self):
        payment = PaymentService().find_by_id(self.payment.id)

        self.assertEqual(payment['proof_status'], 'needs_review')
        self.assertEqual(payment['proof_issues'], [NO_PROOF_ISSUE])
        self.assertEqual(payment['parent']['name'], 'Maria Santos')
        self.assertEqual(payment['booking']['status'], 'completed')

    def test_adding_then_removing_the_only_proof(self):
        proof = make_proof(self.booking)
        self.assertEqual(PaymentService().find_by_id(self.payment.id)['proof_status'], 'ok')

        PaymentProofService().delete(proof.id)

        payment = PaymentService().find_by_id(self.payment.id)
        self.assertEqual(payment['proof_status'], 'needs_review')
        self.assertEqual(payment['proof_issues'], [NO_PROOF_ISSUE])

    def test_suspicious_proof_is_reported(self):
        make_proof(self.booking, mime_type='application/pdf', public_url=None)

        payment = PaymentService().find_by_id(self.payment.id)

        self.assertEqual(payment['proof_issues'], ['Missing public URL', 'Unexpected MIME type: application/pdf'])
        self.assertTrue(payment['proofs'][0]['suspicious'])

    def test_list_counts_suspicious_payments(self):
        other_booking = make_booking(self.parent, self.caregiver)
        make_payment(other_booking)
        make_proof(other_booking)

        page = PaymentService().list()

        self.assertEqual(page['total'], 2)
        self.assertEqual(page['proof_summary'], {'suspicious_count': 1})

    def test_list_search_by_name_and_booking_id(self):
        other_parent = make_user('parent', name='Jose Rizal')
        other_booking = make_booking(other_parent, self.caregiver)
        make_payment(other_booking)

        self.assertEqual(PaymentService().list({'search': 'rizal'})['total'], 1)
        page = PaymentService().list({'search': str(self.booking.id)})
        self.assertEqual([item['id'] for item in page['items']], [self.payment.id])

    def test_status_all_means_no_filter(self):
        make_payment(make_booking(self.parent, self.caregiver), status='paid')
        self.assertEqual(PaymentService().list({'status': 'all'})['total'], 2)
        self.assertEqual(PaymentService().list({'status': 'paid'})['total'], 1)


class PaymentStatusTestCase(PaymentFixtureMixin, TestCase):
    """Test suite for update_payment_status."""

    def test_mark_paid_with_notes(self):
        payment, changed = update_payment_status(self.payment.id, 'paid', self.actor, notes='GCash ref 1234')

        self.assertTrue(changed)
        self.assertEqual(payment['payment_status'], 'paid')
        self.assertEqual(payment['notes'], 'GCash ref 1234')

        entry = AuditLog.objects.get(action='UPDATE_PAYMENT_STATUS')
        self.assertEqual(entry.metadata['from'], 'pending')
        self.assertEqual(entry.metadata['to'], 'paid')
        self.assertEqual(entry.metadata['proof_status'], 'needs_review')
        self.assertEqual(entry.target_type, 'payment')

    def test_paid_requires_notes(self):
        for notes in (None, '', '   '):
            with self.subTest(notes=notes):
                with self.assertRaises(ValidationError):
                    update_payment_status(self.payment.id, 'paid', self.actor, notes=notes)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.payment_status, 'pending')

    def test_disputed_needs_no_notes(self):
        payment, changed = update_payment_status(self.payment.id, 'disputed', self.actor)
        self.assertTrue(changed)
        self.assertEqual(payment['payment_status'], 'disputed')

    def test_same_status_is_a_quiet_noop(self):
        payment, changed = update_payment_status(self.payment.id, 'pending', self.actor)

        self.assertFalse(changed)
        self.assertEqual(payment['payment_status'], 'pending')
        self.assertFalse(AuditLog.objects.exists())

    @override_settings(IYAYA={'AUDIT_PAYMENT_NOOPS': True})
    def test_same_status_is_audited_when_enabled(self):
        payment, changed = update_payment_status(self.payment.id, 'pending', self.actor)

        self.assertFalse(changed)
        entry = AuditLog.objects.get()
        self.assertTrue(entry.metadata['noop'])
        self.assertEqual(entry.metadata['from'], 'pending')

    def test_refunded_payment_never_changes(self):
        Payment.objects.filter(pk=self.payment.pk).update(payment_status='refunded')

        with self.assertRaises(InvalidTransition):
            update_payment_status(self.payment.id, 'paid', self.actor, notes='Oops')

    def test_refunded_status_sets_refund_reason(self):
        payment, _changed = update_payment_status(self.payment.id, 'refunded', self.actor, notes='Duplicate charge')
        self.assertEqual(payment['refund_reason'], 'Duplicate charge')

    def test_unknown_payment(self):
        with self.assertRaises(NotFound):
            update_payment_status('00000000-0000-0000-0000-000000000000', 'paid', self.actor, notes='x')

    def test_unknown_status(self):
        with self.assertRaises(ValidationError):
            update_payment_status(self.payment.id, 'settled', self.actor)


class RefundTestCase(PaymentFixtureMixin, TestCase):
    """Test suite for refund_payment."""

    def test_refund(self):
        payment = refund_payment(self.payment.id, self.actor, '  Caregiver no-show  ')

        self.assertEqual(payment['payment_status'], 'refunded')
        self.assertEqual(payment['refund_reason'], 'Caregiver no-show')
        entry = AuditLog.objects.get(action='REFUND_PAYMENT')
        self.assertEqual(entry.metadata['reason'], 'Caregiver no-show')

    def test_refund_requires_reason(self):
        for reason in ('', '   ', None):
            with self.subTest(reason=reason):
                with self.assertRaises(ValidationError):
                    refund_payment(self.payment.id, self.actor, reason)

    def test_refund_twice(self):
        refund_payment(self.payment.id, self.actor, 'First')
        with self.assertRaises(InvalidTransition):
            refund_payment(self.payment.id, self.actor, 'Second')
        self.assertEqual(AuditLog.objects.filter(action='REFUND_PAYMENT').count(), 1)

    def test_refunded_payment_with_blank_reason(self):
        Payment.objects.filter(pk=self.payment.pk).update(payment_status='refunded')
        with self.assertRaises(InvalidTransition):
            refund_payment(self.payment.id, self.actor, '')

    def test_refund_unknown_payment(self):
        with self.assertRaises(NotFound):
            refund_payment('00000000-0000-0000-0000-000000000000', self.actor, 'Reason')
