"""
Request serializers for the iYaya admin API.

These only validate and coerce input; responses are the plain rows the
services return.
"""

from rest_framework import serializers

from .models import Job, User, UserReport
from .services import SYSTEM_SETTINGS_DEFAULTS
from .transitions import BOOKING_STATUSES, BULK_USER_STATUSES, PAYMENT_STATUSES, USER_STATUSES


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class UserStatusUpdateSerializer(serializers.Serializer):
    """
    Serializer for a single account status change.

    Fields:
    - status: Required, one of active, suspended, banned, inactive
    - reason: Optional free text shown to the user
    - duration_days: Optional suspension length, at least 1
    """

    status = serializers.ChoiceField(choices=USER_STATUSES)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    duration_days = serializers.IntegerField(required=False, min_value=1, allow_null=True)

    def validate_reason(self, value):
        return _strip(value)


class BulkUserStatusSerializer(UserStatusUpdateSerializer):
    """
    Serializer for a status change applied to several accounts.

    Inactive is not offered in bulk.
    """

    user_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    status = serializers.ChoiceField(choices=BULK_USER_STATUSES)


class UserCreateSerializer(serializers.Serializer):
    """
    Serializer for admin-created accounts.

    Fields:
    - email: Required, normalized to lowercase
    - password: Required, at least 8 characters
    - name, phone: Optional
    - role: Optional, defaults to parent
    """

    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=200, default='')
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20, default='')
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default=User.ROLE_PARENT)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_name(self, value):
        return _strip(value)


class UserUpdateSerializer(serializers.Serializer):
    """Partial profile, role and status edits."""

    email = serializers.EmailField(required=False)
    name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    profile_image = serializers.URLField(required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)
    status = serializers.ChoiceField(choices=USER_STATUSES, required=False)
    status_reason = serializers.CharField(required=False, allow_blank=True)
    duration_days = serializers.IntegerField(required=False, min_value=1, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide at least one field to update.')
        return attrs


class DocumentVerificationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=('pending', 'verified', 'rejected'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class JobSerializer(serializers.Serializer):
    """
    Serializer for job create and update.

    Fields:
    - title: Required on create, cannot be whitespace only
    - description, location: Optional
    - budget, hourly_rate: Optional, not negative
    - parent_id: Required on create
    - caregiver_id: Optional
    - status, reason: Update only; the status must follow the job edges
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    budget = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    hourly_rate = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    parent_id = serializers.UUIDField()
    caregiver_id = serializers.UUIDField(required=False, allow_null=True)
    status = serializers.CharField(required=False)
    reason = serializers.CharField(required=False, allow_blank=True)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Title cannot be empty or whitespace only.')
        return value

    def validate(self, attrs):
        if self.partial and not attrs:
            raise serializers.ValidationError('Provide at least one field to update.')
        if not self.partial and 'status' in attrs:
            raise serializers.ValidationError({'status': 'New jobs always start active.'})
        return attrs


class TransitionSerializer(serializers.Serializer):
    """Optional reason recorded with a named job or booking action."""

    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JobStatusSerializer(TransitionSerializer):
    """Direct job status change. Transient names such as open or pending are accepted."""

    status = serializers.CharField()

    def validate_status(self, value):
        value = value.strip().lower()
        known = {choice for choice, _label in Job.STATUS_CHOICES} | {'pending', 'open', 'confirmed', 'inactive'}
        if value not in known:
            raise serializers.ValidationError(f"'{value}' is not a job status.")
        return value


class BookingStatusSerializer(TransitionSerializer):
    status = serializers.ChoiceField(choices=BOOKING_STATUSES)


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PAYMENT_STATUSES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RefundSerializer(serializers.Serializer):
    # Blank reasons are rejected by the refund itself with a single message.
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ReportStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserReport.STATUS_CHOICES)
    admin_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    resolution = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReportCreateSerializer(serializers.Serializer):
    """
    Serializer for a user-filed report.

    Fields:
    - reported_user_id: Required
    - report_type: Required, one of the report types
    - title, description: Required, cannot be whitespace only
    - category: Optional
    - severity: Optional, defaults to medium
    - evidence_urls: Optional list of URLs
    - booking_id, job_id: Optional context
    """

    reported_user_id = serializers.UUIDField()
    report_type = serializers.ChoiceField(choices=UserReport.REPORT_TYPE_CHOICES)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    severity = serializers.ChoiceField(choices=UserReport.SEVERITY_CHOICES, default='medium')
    evidence_urls = serializers.ListField(child=serializers.URLField(), required=False, default=list)
    booking_id = serializers.UUIDField(required=False, allow_null=True)
    job_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Title cannot be empty or whitespace only.')
        return value

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Description cannot be empty or whitespace only.')
        return value


class SystemSettingsSerializer(serializers.Serializer):
    maintenance_mode = serializers.BooleanField(required=False)
    registration_enabled = serializers.BooleanField(required=False)
    email_verification_required = serializers.BooleanField(required=False)
    background_check_required = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not any(key in attrs for key in SYSTEM_SETTINGS_DEFAULTS):
            raise serializers.ValidationError(
                f"Provide at least one of: {', '.join(SYSTEM_SETTINGS_DEFAULTS)}."
            )
        return attrs
