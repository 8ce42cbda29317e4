"""
Integration tests for the admin moderation API.

Test Coverage:
- Bearer token authentication and the admin role check
- Success and error envelopes, pagination and debug details
- Job, booking, user, payment and report endpoints end to end
"""

import uuid

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.models import AuditLog, Job

from helpers import client_for, make_booking, make_job, make_payment, make_user


class AdminAccessTestCase(TestCase):
    """Test suite for who may call the admin API."""

    def setUp(self):
        self.url = reverse('admin_dashboard')

    def test_missing_token(self):
        response = APIClient().get(self.url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertIn('error', response.data)

    def test_malformed_token(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        self.assertEqual(client.get(self.url).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_parent_is_forbidden(self):
        response = client_for(make_user('parent')).get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('Admin privileges required', response.data['error'])

    def test_banned_admin_is_forbidden(self):
        admin = make_user('admin', status='banned')
        self.assertEqual(client_for(admin).get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_deleted_account_token_is_rejected(self):
        admin = make_user('admin')
        client = client_for(admin)
        superadmin = make_user('superadmin')
        client_for(superadmin).delete(reverse('admin_user_detail', args=[admin.id]))

        self.assertEqual(client.get(self.url).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_gets_dashboard(self):
        make_user('parent')
        response = client_for(make_user('admin')).get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['total_parents'], 1)


class JobEndpointsTestCase(TestCase):
    """Test suite for the job endpoints."""

    def setUp(self):
        self.admin = make_user('admin')
        self.client = client_for(self.admin)
        self.parent = make_user('parent')

    def test_approve_route(self):
        job = make_job(self.parent)

        response = self.client.post(reverse('admin_job_approve', args=[job.id]), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'filled')
        self.assertEqual(response.data['message'], 'Job approve recorded')

    def test_rejected_transition_envelope(self):
        job = make_job(self.parent, status='completed')

        response = self.client.post(reverse('admin_job_approve', args=[job.id]), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn("Cannot approve job in status 'completed'", response.data['error'])

    def test_unknown_job_is_404(self):
        response = self.client.post(reverse('admin_job_cancel', args=[uuid.uuid4()]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Job not found')

    def test_list_with_pagination(self):
        for _ in range(3):
            make_job(self.parent)
        make_job(self.parent, status='cancelled')

        response = self.client.get(reverse('admin_job_list'), {'status': 'open', 'limit': 2})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['pagination'], {'page': 1, 'limit': 2, 'total': 3, 'total_pages': 2})

    def test_create_and_update(self):
        response = self.client.post(reverse('admin_job_list'), {
            'title': '  Weekend nanny  ',
            'parent_id': str(self.parent.id),
            'budget': '1200.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        job_id = response.data['data']['id']
        self.assertEqual(response.data['data']['title'], 'Weekend nanny')

        response = self.client.put(reverse('admin_job_detail', args=[job_id]), {'status': 'open'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(reverse('admin_job_detail', args=[job_id]), {'status': 'confirmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Job.objects.get(pk=job_id).status, 'filled')

    def test_rejected_put_writes_nothing(self):
        job = make_job(self.parent, status='cancelled', title='Original')

        response = self.client.put(
            reverse('admin_job_detail', args=[job.id]), {'title': 'Changed', 'status': 'completed'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Job.objects.get(pk=job.pk).title, 'Original')
        self.assertFalse(AuditLog.objects.exists())

    def test_create_rejects_status(self):
        response = self.client.post(reverse('admin_job_list'), {
            'title': 'Tutor',
            'parent_id': str(self.parent.id),
            'status': 'filled',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['errors'])

    def test_invalid_uuid_filter(self):
        response = self.client.get(reverse('admin_job_list'), {'parent_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'parent_id must be a valid UUID')


class ErrorDetailsTestCase(TestCase):
    def setUp(self):
        self.client = client_for(make_user('admin'))
        self.url = reverse('admin_job_status', args=[uuid.uuid4()])

    @override_settings(IYAYA={'EXPOSE_ERROR_DETAILS': True})
    def test_debug_details_when_enabled(self):
        response = self.client.patch(self.url, {'status': 'filled'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['debug']['type'], 'NotFound')
        self.assertTrue(response.data['debug']['stack'])

    @override_settings(IYAYA={'EXPOSE_ERROR_DETAILS': False})
    def test_no_debug_details_when_disabled(self):
        response = self.client.patch(self.url, {'status': 'filled'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertNotIn('debug', response.data)
        self.assertEqual(set(response.data), {'success', 'error'})


class BookingEndpointsTestCase(TestCase):
    def setUp(self):
        self.client = client_for(make_user('admin'))
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver')

    def test_cancel_then_cancel_again(self):
        booking = make_booking(self.parent, self.caregiver)
        url = reverse('admin_booking_cancel', args=[booking.id])

        first = self.client.post(url, {'reason': 'Parent asked'}, format='json')
        second = self.client.post(url, {}, format='json')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['data']['status'], 'cancelled')
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)

    def test_direct_status(self):
        booking = make_booking(self.parent, self.caregiver)
        response = self.client.patch(
            reverse('admin_booking_status', args=[booking.id]), {'status': 'confirmed'}, format='json'
        )
        self.assertEqual(response.data['data']['status'], 'confirmed')
        self.assertEqual(response.data['data']['total_hours'], 4.5)

    def test_bad_status_value(self):
        booking = make_booking(self.parent, self.caregiver)
        response = self.client.patch(
            reverse('admin_booking_status', args=[booking.id]), {'status': 'started'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['errors'])


class UserEndpointsTestCase(TestCase):
    def setUp(self):
        self.admin = make_user('admin')
        self.client = client_for(self.admin)
        self.parent = make_user('parent')

    def test_list_includes_stats(self):
        make_user('caregiver', status='banned')

        response = self.client.get(reverse('admin_user_list'), {'role': 'parent'})

        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['stats']['total'], 3)
        self.assertEqual(response.data['stats']['banned'], 1)

    def test_suspend(self):
        response = self.client.patch(
            reverse('admin_user_status', args=[self.parent.id]),
            {'status': 'suspended', 'reason': 'No-show', 'duration_days': 3},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['suspension_count'], 1)
        self.assertEqual(response.data['message'], 'User status updated to suspended')

    def test_zero_day_suspension_is_rejected(self):
        response = self.client.patch(
            reverse('admin_user_status', args=[self.parent.id]),
            {'status': 'suspended', 'duration_days': 0},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_history(self):
        self.client.patch(reverse('admin_user_status', args=[self.parent.id]), {'status': 'banned'}, format='json')

        response = self.client.get(reverse('admin_user_status_history', args=[self.parent.id]))

        self.assertEqual([row['status'] for row in response.data['data']], ['banned'])

    def test_bulk_status(self):
        other = make_user('parent')
        response = self.client.post(reverse('admin_user_bulk_status'), {
            'user_ids': [str(self.parent.id), str(other.id), str(uuid.uuid4())],
            'status': 'banned',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['updated_count'], 2)
        self.assertEqual(response.data['data']['skipped_count'], 1)
        self.assertEqual(response.data['message'], 'Updated 2 of 3 users')

    def test_create_user(self):
        response = self.client.post(reverse('admin_user_list'), {
            'email': 'sitter@example.com',
            'password': 'securepass123',
            'role': 'caregiver',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.data['data'])


class PaymentEndpointsTestCase(TestCase):
    def setUp(self):
        self.client = client_for(make_user('admin'))
        booking = make_booking(make_user('parent'), make_user('caregiver'), status='completed')
        self.payment = make_payment(booking)

    def test_detail_warnings(self):
        response = self.client.get(reverse('admin_payment_detail', args=[self.payment.id]))

        self.assertEqual(response.data['data']['proof_status'], 'needs_review')
        self.assertEqual(response.data['warnings'], ['No payment proof uploaded'])

    def test_list_proof_summary(self):
        response = self.client.get(reverse('admin_payment_list'))
        self.assertEqual(response.data['proof_summary'], {'suspicious_count': 1})

    def test_same_status_message(self):
        response = self.client.patch(
            reverse('admin_payment_status', args=[self.payment.id]), {'status': 'pending'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Payment status unchanged')

    def test_paid_without_notes(self):
        response = self.client.patch(
            reverse('admin_payment_status', args=[self.payment.id]), {'status': 'paid', 'notes': '  '}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refund(self):
        url = reverse('admin_payment_refund', args=[self.payment.id])

        self.assertEqual(self.client.post(url, {'reason': ''}, format='json').status_code, 400)

        response = self.client.post(url, {'reason': 'Caregiver no-show'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['payment_status'], 'refunded')

        self.assertEqual(self.client.post(url, {'reason': 'Again'}, format='json').status_code, 400)


class AuditEndpointTestCase(TestCase):
    def test_filters_and_invalid_admin_id(self):
        admin = make_user('admin')
        client = client_for(admin)
        job = make_job(make_user('parent'))
        client.post(reverse('admin_job_cancel', args=[job.id]), {}, format='json')

        response = client.get(reverse('admin_audit_log'), {'admin_id': str(admin.id)})
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['data'][0]['action'], 'CANCEL_JOB')

        response = client.get(reverse('admin_audit_log'), {'admin_id': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ReportEndpointsTestCase(TestCase):
    def setUp(self):
        self.parent = make_user('parent')
        self.caregiver = make_user('caregiver')

    def test_file_and_review_report(self):
        response = client_for(self.parent).post(reverse('report_create'), {
            'reported_user_id': str(self.caregiver.id),
            'report_type': 'safety_concern',
            'title': 'Unsafe driving',
            'description': 'Drove the kids without seatbelts.',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        report_id = response.data['data']['id']
        self.assertEqual(response.data['data']['severity'], 'medium')

        mine = client_for(self.parent).get(reverse('report_mine'))
        self.assertEqual([row['id'] for row in mine.data['data']], [report_id])

        admin_client = client_for(make_user('admin'))
        response = admin_client.patch(
            reverse('admin_report_status', args=[report_id]), {'status': 'under_review'}, format='json'
        )
        self.assertEqual(response.data['data']['status'], 'under_review')
        self.assertEqual(AuditLog.objects.filter(action='UPDATE_REPORT_STATUS').count(), 1)

    def test_parent_cannot_review(self):
        response = client_for(self.parent).get(reverse('admin_report_list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_banned_account_cannot_file(self):
        banned = make_user('parent', status='banned')
        response = client_for(banned).post(reverse('report_create'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
