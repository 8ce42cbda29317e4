"""
URL configuration for the iYaya admin backend.

Admin moderation endpoints live under ``api/admin/``; the two user-facing
report endpoints under ``api/reports/``. Bearer tokens are issued at
``api/token/``.
"""
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core import views
from core.transitions import BOOKING_ACTIONS, JOB_ACTIONS

booking_action_urls = [
    path(
        f'api/admin/bookings/<uuid:pk>/{action}/',
        views.BookingActionView.as_view(transition=action),
        name=f'admin_booking_{action}',
    )
    for action in BOOKING_ACTIONS
]

job_action_urls = [
    path(
        f'api/admin/jobs/<uuid:pk>/{action}/',
        views.JobActionView.as_view(transition=action),
        name=f'admin_job_{action}',
    )
    for action in JOB_ACTIONS
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # Bearer tokens
    path('api/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Dashboard and settings
    path('api/admin/dashboard/', views.DashboardView.as_view(), name='admin_dashboard'),
    path('api/admin/settings/', views.SystemSettingsView.as_view(), name='admin_settings'),

    # Users
    path('api/admin/users/', views.UserListView.as_view(), name='admin_user_list'),
    path('api/admin/users/bulk/status/', views.BulkUserStatusView.as_view(), name='admin_user_bulk_status'),
    path('api/admin/users/<uuid:pk>/', views.UserDetailView.as_view(), name='admin_user_detail'),
    path('api/admin/users/<uuid:pk>/status/', views.UserStatusView.as_view(), name='admin_user_status'),
    path(
        'api/admin/users/<uuid:pk>/status-history/',
        views.UserStatusHistoryView.as_view(),
        name='admin_user_status_history',
    ),
    path(
        'api/admin/users/<uuid:pk>/verify-documents/',
        views.DocumentVerificationView.as_view(),
        name='admin_user_verify_documents',
    ),

    # Bookings
    path('api/admin/bookings/', views.BookingListView.as_view(), name='admin_booking_list'),
    path('api/admin/bookings/<uuid:pk>/', views.BookingDetailView.as_view(), name='admin_booking_detail'),
    path('api/admin/bookings/<uuid:pk>/status/', views.BookingStatusView.as_view(), name='admin_booking_status'),
    *booking_action_urls,

    # Payments
    path('api/admin/payments/', views.PaymentListView.as_view(), name='admin_payment_list'),
    path('api/admin/payments/<uuid:pk>/', views.PaymentDetailView.as_view(), name='admin_payment_detail'),
    path('api/admin/payments/<uuid:pk>/status/', views.PaymentStatusView.as_view(), name='admin_payment_status'),
    path('api/admin/payments/<uuid:pk>/refund/', views.PaymentRefundView.as_view(), name='admin_payment_refund'),

    # Jobs
    path('api/admin/jobs/', views.JobListView.as_view(), name='admin_job_list'),
    path('api/admin/jobs/<uuid:pk>/', views.JobDetailView.as_view(), name='admin_job_detail'),
    path('api/admin/jobs/<uuid:pk>/status/', views.JobStatusView.as_view(), name='admin_job_status'),
    *job_action_urls,

    # Audit trail
    path('api/admin/audit/', views.AuditLogView.as_view(), name='admin_audit_log'),

    # Reports
    path('api/admin/reports/', views.ReportListView.as_view(), name='admin_report_list'),
    path('api/admin/reports/stats/', views.ReportStatsView.as_view(), name='admin_report_stats'),
    path('api/admin/reports/<uuid:pk>/', views.ReportDetailView.as_view(), name='admin_report_detail'),
    path('api/admin/reports/<uuid:pk>/status/', views.ReportStatusView.as_view(), name='admin_report_status'),
    path('api/reports/', views.ReportCreateView.as_view(), name='report_create'),
    path('api/reports/mine/', views.MyReportsView.as_view(), name='report_mine'),
]
