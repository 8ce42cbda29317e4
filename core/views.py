"""
Admin moderation API views for the iYaya marketplace.

Every admin view authenticates the bearer token, checks for an active
admin or superadmin account and hands an ``Actor`` to the moderation
operations. Successful responses use the envelope
``{"success": true, "data": ...}``; list endpoints add ``pagination``.
Errors are rendered by ``core.exceptions.api_exception_handler``.
"""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import moderation, transitions
from .audit import AuditLogService
from .authentication import Actor
from .exceptions import NotFound, ValidationError
from .permissions import IsActiveAccount, IsAdminRole
from .proofs import review_warnings
from .serializers import (
    BookingStatusSerializer,
    BulkUserStatusSerializer,
    DocumentVerificationSerializer,
    JobSerializer,
    JobStatusSerializer,
    PaymentStatusSerializer,
    RefundSerializer,
    ReportCreateSerializer,
    ReportStatusSerializer,
    SystemSettingsSerializer,
    TransitionSerializer,
    UserCreateSerializer,
    UserStatusUpdateSerializer,
    UserUpdateSerializer,
)
from .services import (
    BookingService,
    JobService,
    PaymentService,
    ReportService,
    SystemSettingsService,
    UserService,
    UserStatusHistoryService,
    as_uuid,
)

logger = logging.getLogger(__name__)


def success(data=None, status_code=status.HTTP_200_OK, **extra):
    body = {'success': True, 'data': data}
    body.update(extra)
    return Response(body, status=status_code)


def paginated(page, **extra):
    """Envelope for a service page: items as ``data`` plus a ``pagination`` block."""
    return success(
        page['items'],
        pagination={
            'page': page['page'],
            'limit': page['limit'],
            'total': page['total'],
            'total_pages': page['total_pages'],
        },
        **extra,
    )


class ActorAPIView(APIView):
    """
    Base view for authenticated account holders.

    Sets ``self.actor`` from the authenticated user once the permission
    checks in ``initial`` have passed.
    """

    permission_classes = [IsAuthenticated, IsActiveAccount]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.actor = Actor.from_user(request.user)

    def get_client_ip(self, request):
        """
        Get client IP address from request.
        Handles proxy headers for accurate IP detection.
        """
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')

    def validated(self, serializer_class, partial=False):
        serializer = serializer_class(data=self.request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def page_params(self):
        params = self.request.query_params
        return params.get('page'), params.get('limit')

    def query_filters(self, names, uuid_names=()):
        """
        Pick the named query parameters.

        Raises:
            ValidationError: If one of ``uuid_names`` is present but not a UUID
        """
        params = self.request.query_params
        filters = {name: params.get(name) for name in names if params.get(name)}
        for name in uuid_names:
            value = params.get(name)
            if not value:
                continue
            parsed = as_uuid(value)
            if parsed is None:
                raise ValidationError(f'{name} must be a valid UUID')
            filters[name] = parsed
        return filters


class AdminAPIView(ActorAPIView):
    permission_classes = [IsAuthenticated, IsAdminRole]


# Dashboard and settings


class DashboardView(AdminAPIView):
    """
    GET /api/admin/dashboard/

    Parent and caregiver totals, users per status and the newest accounts.
    """

    def get(self, request, *args, **kwargs):
        return success(moderation.dashboard_stats(self.actor))


class SystemSettingsView(AdminAPIView):
    """
    GET   /api/admin/settings/
    PATCH /api/admin/settings/   {"maintenance_mode": true}
    """

    def get(self, request, *args, **kwargs):
        return success(SystemSettingsService().get())

    def patch(self, request, *args, **kwargs):
        patch = self.validated(SystemSettingsSerializer)
        settings = moderation.update_system_settings(patch, self.actor)
        return success(settings, message='Settings updated')


# Users


class UserListView(AdminAPIView):
    """
    GET  /api/admin/users/?role=&status=&search=&page=&limit=
    POST /api/admin/users/

    The list response carries ``stats`` with the number of users overall
    and per status.
    """

    def get(self, request, *args, **kwargs):
        users = UserService()
        page = users.list(self.query_filters(('role', 'status', 'search')), *self.page_params())
        return paginated(page, stats=users.counts())

    def post(self, request, *args, **kwargs):
        data = self.validated(UserCreateSerializer)
        user = moderation.create_user(data, self.actor)
        logger.info(
            f"Admin created account. User ID: {user['id']}, "
            f"Actor: {self.actor.email}, IP: {self.get_client_ip(request)}"
        )
        return success(user, status.HTTP_201_CREATED, message='User created')


class UserDetailView(AdminAPIView):
    """
    GET    /api/admin/users/<id>/
    PUT    /api/admin/users/<id>/
    DELETE /api/admin/users/<id>/   (soft delete)
    """

    def get(self, request, *args, **kwargs):
        user = UserService().find_by_id(kwargs['pk'], detailed=True)
        if user is None:
            raise NotFound('User not found')
        return success(user)

    def put(self, request, *args, **kwargs):
        data = self.validated(UserUpdateSerializer, partial=True)
        return success(moderation.update_user(kwargs['pk'], data, self.actor), message='User updated')

    def delete(self, request, *args, **kwargs):
        user = moderation.delete_user(kwargs['pk'], self.actor)
        logger.info(
            f"Admin deleted account. User ID: {kwargs['pk']}, "
            f"Actor: {self.actor.email}, IP: {self.get_client_ip(request)}"
        )
        return success(user, message='User deleted')


class UserStatusView(AdminAPIView):
    """
    PATCH /api/admin/users/<id>/status/

    Request body: {"status": "suspended", "reason": "...", "duration_days": 3}
    """

    def patch(self, request, *args, **kwargs):
        data = self.validated(UserStatusUpdateSerializer)
        user = transitions.update_user_status(
            kwargs['pk'],
            data['status'],
            self.actor,
            reason=data.get('reason'),
            duration_days=data.get('duration_days'),
        )
        return success(user, message=f"User status updated to {data['status']}")


class UserStatusHistoryView(AdminAPIView):
    """GET /api/admin/users/<id>/status-history/"""

    def get(self, request, *args, **kwargs):
        if UserService().find_by_id(kwargs['pk']) is None:
            raise NotFound('User not found')
        limit = request.query_params.get('limit') or 20
        try:
            limit = max(1, min(int(limit), 100))
        except ValueError:
            raise ValidationError('limit must be a number') from None
        return success(UserStatusHistoryService().list_by_user(kwargs['pk'], limit=limit))


class BulkUserStatusView(AdminAPIView):
    """
    POST /api/admin/users/bulk/status/

    Request body: {"user_ids": [...], "status": "banned", "reason": "..."}

    Accounts that cannot be updated are reported under ``skipped``.
    """

    def post(self, request, *args, **kwargs):
        data = self.validated(BulkUserStatusSerializer)
        result = transitions.bulk_update_user_status(
            data['user_ids'],
            data['status'],
            self.actor,
            reason=data.get('reason'),
            duration_days=data.get('duration_days'),
        )
        logger.info(
            f"Bulk status request handled. Updated: {result['updated_count']}, "
            f"Skipped: {result['skipped_count']}, IP: {self.get_client_ip(request)}"
        )
        return success(
            result,
            message=f"Updated {result['updated_count']} of {result['updated_count'] + result['skipped_count']} users",
        )


class DocumentVerificationView(AdminAPIView):
    """POST /api/admin/users/<id>/verify-documents/"""

    def post(self, request, *args, **kwargs):
        data = self.validated(DocumentVerificationSerializer)
        user = moderation.verify_caregiver_documents(kwargs['pk'], data['status'], self.actor, notes=data['notes'])
        return success(user, message=f"Documents marked {data['status']}")


# Bookings


class BookingListView(AdminAPIView):
    """GET /api/admin/bookings/?status=&parent_id=&caregiver_id=&job_id=&search="""

    def get(self, request, *args, **kwargs):
        filters = self.query_filters(('status', 'search'), uuid_names=('parent_id', 'caregiver_id', 'job_id'))
        return paginated(BookingService().list(filters, *self.page_params()))


class BookingDetailView(AdminAPIView):
    def get(self, request, *args, **kwargs):
        booking = BookingService().find_by_id(kwargs['pk'], detailed=True)
        if booking is None:
            raise NotFound('Booking not found')
        return success(booking)


class BookingStatusView(AdminAPIView):
    """
    PATCH /api/admin/bookings/<id>/status/

    Request body: {"status": "confirmed", "reason": "..."}
    """

    def patch(self, request, *args, **kwargs):
        data = self.validated(BookingStatusSerializer)
        booking = transitions.set_booking_status(kwargs['pk'], data['status'], self.actor, reason=data.get('reason'))
        logger.info(
            f"Booking status request handled. Booking ID: {kwargs['pk']}, "
            f"Status: {data['status']}, IP: {self.get_client_ip(request)}"
        )
        return success(booking, message=f"Booking status updated to {booking['status']}")


class BookingActionView(AdminAPIView):
    """
    POST /api/admin/bookings/<id>/<confirm|start|complete|cancel>/

    The action is bound per route through ``as_view(transition=...)``.
    """

    transition = None

    def post(self, request, *args, **kwargs):
        data = self.validated(TransitionSerializer)
        booking = transitions.transition_booking(kwargs['pk'], self.transition, self.actor, reason=data.get('reason'))
        return success(booking, message=f"Booking {self.transition} recorded")


# Payments


class PaymentListView(AdminAPIView):
    """
    GET /api/admin/payments/?status=&search=&page=&limit=

    Every payment carries its proofs and review state; ``proof_summary``
    counts those that need review on this page.
    """

    def get(self, request, *args, **kwargs):
        page = PaymentService().list(self.query_filters(('status', 'search')), *self.page_params())
        return paginated(page, proof_summary=page['proof_summary'])


class PaymentDetailView(AdminAPIView):
    def get(self, request, *args, **kwargs):
        payment = PaymentService().find_by_id(kwargs['pk'])
        if payment is None:
            raise NotFound('Payment not found')
        return success(payment, warnings=review_warnings(payment))


class PaymentStatusView(AdminAPIView):
    """
    PATCH /api/admin/payments/<id>/status/

    Request body: {"status": "paid", "notes": "Transfer confirmed"}

    Setting the current status again succeeds without changing anything.
    """

    def patch(self, request, *args, **kwargs):
        data = self.validated(PaymentStatusSerializer)
        payment, changed = transitions.update_payment_status(
            kwargs['pk'], data['status'], self.actor, notes=data.get('notes'),
        )
        message = f"Payment status updated to {data['status']}" if changed else 'Payment status unchanged'
        return success(payment, message=message, warnings=review_warnings(payment))


class PaymentRefundView(AdminAPIView):
    """
    POST /api/admin/payments/<id>/refund/

    Request body: {"reason": "Caregiver did not show up"}
    """

    def post(self, request, *args, **kwargs):
        data = self.validated(RefundSerializer)
        payment = transitions.refund_payment(kwargs['pk'], self.actor, data['reason'])
        logger.info(
            f"Refund request handled. Payment ID: {kwargs['pk']}, "
            f"Actor: {self.actor.email}, IP: {self.get_client_ip(request)}"
        )
        return success(payment, message='Payment refunded', warnings=review_warnings(payment))


# Jobs


class JobListView(AdminAPIView):
    """
    GET  /api/admin/jobs/?status=&parent_id=&caregiver_id=&search=
    POST /api/admin/jobs/
    """

    def get(self, request, *args, **kwargs):
        filters = self.query_filters(('status', 'search'), uuid_names=('parent_id', 'caregiver_id'))
        return paginated(JobService().list(filters, *self.page_params()))

    def post(self, request, *args, **kwargs):
        data = self.validated(JobSerializer)
        return success(moderation.create_job(data, self.actor), status.HTTP_201_CREATED, message='Job created')


class JobDetailView(AdminAPIView):
    """
    GET    /api/admin/jobs/<id>/
    PUT    /api/admin/jobs/<id>/
    DELETE /api/admin/jobs/<id>/
    """

    def get(self, request, *args, **kwargs):
        job = JobService().find_by_id(kwargs['pk'], detailed=True)
        if job is None:
            raise NotFound('Job not found')
        return success(job)

    def put(self, request, *args, **kwargs):
        data = self.validated(JobSerializer, partial=True)
        return success(moderation.update_job(kwargs['pk'], data, self.actor), message='Job updated')

    def delete(self, request, *args, **kwargs):
        moderation.delete_job(kwargs['pk'], self.actor)
        return success(None, message='Job deleted')


class JobStatusView(AdminAPIView):
    """PATCH /api/admin/jobs/<id>/status/   {"status": "cancelled", "reason": "..."}"""

    def patch(self, request, *args, **kwargs):
        data = self.validated(JobStatusSerializer)
        job = transitions.set_job_status(kwargs['pk'], data['status'], self.actor, reason=data.get('reason'))
        return success(job, message=f"Job status updated to {job['status']}")


class JobActionView(AdminAPIView):
    """
    POST /api/admin/jobs/<id>/<approve|reject|cancel|complete|reopen>/

    The action is bound per route through ``as_view(transition=...)``.
    """

    transition = None

    def post(self, request, *args, **kwargs):
        data = self.validated(TransitionSerializer)
        job = transitions.transition_job(kwargs['pk'], self.transition, self.actor, reason=data.get('reason'))
        logger.info(
            f"Job action handled. Job ID: {kwargs['pk']}, Action: {self.transition}, "
            f"IP: {self.get_client_ip(request)}"
        )
        return success(job, message=f"Job {self.transition} recorded")


# Audit trail


class AuditLogView(AdminAPIView):
    """GET /api/admin/audit/?action=&target_id=&admin_id=&target_type=&search="""

    def get(self, request, *args, **kwargs):
        filters = self.query_filters(('action', 'target_id', 'target_type', 'search'), uuid_names=('admin_id',))
        return paginated(AuditLogService().get_logs(filters, *self.page_params()))


# Reports


class ReportListView(AdminAPIView):
    """GET /api/admin/reports/?status=&severity=&report_type=&category=&reported_user_id=&search="""

    def get(self, request, *args, **kwargs):
        filters = self.query_filters(
            ('status', 'severity', 'report_type', 'category', 'search'),
            uuid_names=('reported_user_id',),
        )
        return paginated(ReportService().list(filters, *self.page_params()))


class ReportStatsView(AdminAPIView):
    def get(self, request, *args, **kwargs):
        return success(ReportService().stats())


class ReportDetailView(AdminAPIView):
    def get(self, request, *args, **kwargs):
        report = ReportService().find_by_id(kwargs['pk'], detailed=True)
        if report is None:
            raise NotFound('Report not found')
        return success(report)


class ReportStatusView(AdminAPIView):
    """
    PATCH /api/admin/reports/<id>/status/

    Request body: {"status": "resolved", "admin_notes": "...", "resolution": "..."}
    """

    def patch(self, request, *args, **kwargs):
        data = self.validated(ReportStatusSerializer)
        report = transitions.update_report_status(
            kwargs['pk'],
            data['status'],
            self.actor,
            admin_notes=data.get('admin_notes'),
            resolution=data.get('resolution'),
        )
        return success(report, message=f"Report marked {data['status']}")


class ReportCreateView(ActorAPIView):
    """
    POST /api/reports/

    Any active account may report another user.
    """

    def post(self, request, *args, **kwargs):
        data = self.validated(ReportCreateSerializer)
        report = moderation.file_report(self.actor, data)
        logger.info(f"Report submitted. Report ID: {report['id']}, IP: {self.get_client_ip(request)}")
        return success(report, status.HTTP_201_CREATED, message='Report submitted')


class MyReportsView(ActorAPIView):
    """GET /api/reports/mine/"""

    def get(self, request, *args, **kwargs):
        return paginated(ReportService().list_by_reporter(self.actor.id, *self.page_params()))
