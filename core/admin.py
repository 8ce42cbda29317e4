"""
Django admin configuration for the marketplace models.

Audit entries and status history are append-only, so their admin pages
are read-only.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import (
    AuditLog,
    Booking,
    CaregiverProfile,
    Job,
    Payment,
    PaymentProof,
    SystemSettings,
    User,
    UserReport,
    UserStatusHistory,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for marketplace accounts.

    Extends Django's UserAdmin with role, moderation status and suspension fields.
    """

    list_display = ['email', 'name', 'role', 'status', 'suspension_end_date', 'deleted_at', 'created_at']
    list_filter = ['role', 'status', 'is_staff', 'created_at']
    search_fields = ['email', 'name', 'phone']
    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('email', 'username', 'password')
        }),
        (_('Profile'), {
            'fields': ('name', 'phone', 'profile_image', 'role')
        }),
        (_('Moderation'), {
            'fields': (
                'status',
                'status_reason',
                'status_updated_at',
                'status_updated_by',
                'suspension_end_date',
                'suspension_count',
                'last_suspension_at',
                'deleted_at',
                'deleted_by',
            )
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined', 'status_updated_at']
    date_hierarchy = 'created_at'
    list_per_page = 25


@admin.register(CaregiverProfile)
class CaregiverProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'experience_years', 'hourly_rate', 'rating', 'trust_score', 'is_active']
    list_filter = ['is_active']
    search_fields = ['user__email', 'user__name']
    raw_id_fields = ['user']


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ['title', 'parent', 'caregiver', 'status', 'budget', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['title', 'description', 'location']
    raw_id_fields = ['parent', 'caregiver']


class PaymentProofInline(admin.TabularInline):
    model = PaymentProof
    fk_name = 'booking'
    extra = 0
    fields = ['public_url', 'storage_path', 'mime_type', 'payment_type', 'uploaded_by', 'uploaded_at']
    raw_id_fields = ['uploaded_by']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'parent', 'caregiver', 'status', 'date', 'start_time', 'end_time', 'total_amount']
    list_filter = ['status', 'date']
    search_fields = ['parent__email', 'caregiver__email', 'address']
    raw_id_fields = ['parent', 'caregiver', 'job']
    inlines = [PaymentProofInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'parent', 'caregiver', 'total_amount', 'payment_status', 'created_at']
    list_filter = ['payment_status']
    search_fields = ['parent__email', 'caregiver__email']
    raw_id_fields = ['booking', 'parent', 'caregiver']


@admin.register(PaymentProof)
class PaymentProofAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'mime_type', 'payment_type', 'uploaded_at']
    list_filter = ['payment_type', 'mime_type']
    raw_id_fields = ['booking', 'uploaded_by']


@admin.register(UserReport)
class UserReportAdmin(admin.ModelAdmin):
    list_display = ['title', 'report_type', 'severity', 'status', 'reporter', 'reported_user', 'created_at']
    list_filter = ['status', 'severity', 'report_type']
    search_fields = ['title', 'description']
    raw_id_fields = ['reporter', 'reported_user', 'reviewed_by', 'booking', 'job']


class ReadOnlyAdmin(admin.ModelAdmin):
    """Admin for append-only tables: browse and search only."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ['created_at', 'action', 'target_type', 'target_id', 'admin_id']
    list_filter = ['action', 'target_type']
    search_fields = ['action', 'target_id']
    date_hierarchy = 'created_at'


@admin.register(UserStatusHistory)
class UserStatusHistoryAdmin(ReadOnlyAdmin):
    list_display = ['changed_at', 'user', 'status', 'changed_by']
    list_filter = ['status']
    search_fields = ['user__email', 'reason']


@admin.register(SystemSettings)
class SystemSettingsAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'maintenance_mode', 'registration_enabled',
        'email_verification_required', 'background_check_required', 'updated_at',
    ]
