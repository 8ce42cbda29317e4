"""
Data model for the iYaya caregiver marketplace.

Every table the admin tooling reads or writes is declared here with an
explicit ``db_table`` so the persistence gateway can address it by name.
"""

import uuid
from decimal import Decimal

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class MarketplaceUserManager(UserManager):
    """User manager that creates superusers with the superadmin role."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ROLE_SUPERADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Marketplace account for parents, caregivers and administrators.

    Additional fields:
    - id: UUID shared with the identity provider
    - email: Required, unique, stored lower-cased
    - name / phone / profile_image: Profile data
    - role: parent, caregiver, admin or superadmin
    - status: active, suspended, banned or inactive
    - status_reason / status_updated_at / status_updated_by: Last moderation change
    - suspension_end_date / suspension_count / last_suspension_at: Suspension tracking
    - deleted_at / deleted_by: Soft delete stamp
    """

    ROLE_PARENT = 'parent'
    ROLE_CAREGIVER = 'caregiver'
    ROLE_ADMIN = 'admin'
    ROLE_SUPERADMIN = 'superadmin'

    ROLE_CHOICES = [
        (ROLE_PARENT, 'Parent'),
        (ROLE_CAREGIVER, 'Caregiver'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_SUPERADMIN, 'Super Admin'),
    ]

    ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPERADMIN)

    STATUS_ACTIVE = 'active'
    STATUS_SUSPENDED = 'suspended'
    STATUS_BANNED = 'banned'
    STATUS_INACTIVE = 'inactive'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_SUSPENDED, 'Suspended'),
        (STATUS_BANNED, 'Banned'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    name = models.CharField(_('name'), max_length=200, blank=True, default='')

    phone = models.CharField(_('phone'), max_length=20, blank=True, default='')

    profile_image = models.URLField(
        _('profile image'),
        max_length=500,
        blank=True,
        default='',
        help_text=_('Public URL of the profile picture in the object store.')
    )

    role = models.CharField(
        _('role'),
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_PARENT,
        help_text=_('Marketplace role. Changed only by an explicit admin action.')
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        help_text=_('Account moderation status.')
    )

    status_reason = models.TextField(_('status reason'), blank=True, default='')

    status_updated_at = models.DateTimeField(_('status updated at'), null=True, blank=True)

    status_updated_by = models.UUIDField(
        _('status updated by'),
        null=True,
        blank=True,
        help_text=_('Id of the admin who made the last status change.')
    )

    suspension_end_date = models.DateTimeField(
        _('suspension end date'),
        null=True,
        blank=True,
        help_text=_('When a suspension lapses and the account is reactivated.')
    )

    suspension_count = models.PositiveIntegerField(_('suspension count'), default=0)

    last_suspension_at = models.DateTimeField(_('last suspension at'), null=True, blank=True)

    deleted_at = models.DateTimeField(_('deleted at'), null=True, blank=True)

    deleted_by = models.UUIDField(_('deleted by'), null=True, blank=True)

    created_by = models.UUIDField(
        _('created by'),
        null=True,
        blank=True,
        help_text=_('Id of the admin who created the account, if any.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    objects = MarketplaceUserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='users_role_0f2ee1_idx'),
            models.Index(fields=['status'], name='users_status_c3b0a4_idx'),
            models.Index(fields=['status', 'suspension_end_date'], name='users_status_5d1e7b_idx'),
        ]

    def __str__(self):
        """Return email as string representation."""
        return self.email or self.username

    @property
    def is_admin_role(self):
        """True for admin and superadmin accounts."""
        return self.role in self.ADMIN_ROLES

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Email is lowercase for case-insensitive uniqueness
        - A suspended account carries a suspension end date

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if self.status == self.STATUS_SUSPENDED and not self.suspension_end_date:
            raise ValidationError({
                'suspension_end_date': _('Suspended accounts require a suspension end date.')
            })

    def save(self, *args, **kwargs):
        """Normalize email to lowercase before saving."""
        if self.email:
            self.email = self.email.lower()
        super().save(*args, **kwargs)


class CaregiverProfile(models.Model):
    """
    Caregiver-specific profile data, one row per caregiver account.

    ``verification`` holds the document review state:
    {"status": "pending|verified|rejected", "verified_by", "verified_at", "notes"}
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='caregiver_profile',
        help_text=_('Caregiver account this profile extends')
    )

    bio = models.TextField(_('bio'), blank=True, default='')

    experience_years = models.PositiveIntegerField(_('years of experience'), default=0)

    hourly_rate = models.DecimalField(
        _('hourly rate'),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'), message=_('Hourly rate cannot be negative.'))]
    )

    rating = models.DecimalField(
        _('rating'),
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00'), message=_('Rating cannot be negative.')),
            MaxValueValidator(Decimal('5.00'), message=_('Rating cannot exceed 5.00.'))
        ]
    )

    verification = models.JSONField(_('verification'), default=dict, blank=True)

    trust_score = models.IntegerField(
        _('trust score'),
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    is_active = models.BooleanField(
        _('active'),
        default=False,
        help_text=_('Listed in caregiver search. Set once documents are verified.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'caregiver_profiles'
        verbose_name = _('caregiver profile')
        verbose_name_plural = _('caregiver profiles')

    def __str__(self):
        return f"Caregiver profile for {self.user}"


class Job(models.Model):
    """
    Job posting created by a parent, optionally assigned to a caregiver.

    Persisted statuses are active, filled, cancelled and completed. Clients
    that speak pending/open/confirmed are mapped onto these before storage.
    """

    STATUS_ACTIVE = 'active'
    STATUS_FILLED = 'filled'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_FILLED, 'Filled'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    title = models.CharField(_('title'), max_length=200)

    description = models.TextField(_('description'), blank=True, default='')

    location = models.CharField(_('location'), max_length=255, blank=True, default='')

    budget = models.DecimalField(
        _('budget'),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'), message=_('Budget cannot be negative.'))]
    )

    hourly_rate = models.DecimalField(
        _('hourly rate'),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'), message=_('Hourly rate cannot be negative.'))]
    )

    parent = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='jobs_posted',
        help_text=_('Parent who posted the job')
    )

    caregiver = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='jobs_assigned',
        help_text=_('Caregiver assigned to the job, if any')
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'jobs'
        verbose_name = _('job')
        verbose_name_plural = _('jobs')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='jobs_status_8a2c41_idx'),
            models.Index(fields=['parent'], name='jobs_parent__4e91d2_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    def clean(self):
        """
        Validate the job.

        Raises:
            ValidationError: If the parent is not a parent account or the
                caregiver is not a caregiver account
        """
        super().clean()

        roles = dict(
            User.objects.filter(pk__in=[self.parent_id, self.caregiver_id]).values_list('pk', 'role')
        )

        if self.parent_id and roles.get(self.parent_id, User.ROLE_PARENT) != User.ROLE_PARENT:
            raise ValidationError({'parent': _('Jobs can only be posted by parents.')})

        if self.caregiver_id and roles.get(self.caregiver_id, User.ROLE_CAREGIVER) != User.ROLE_CAREGIVER:
            raise ValidationError({'caregiver': _('Jobs can only be assigned to caregivers.')})


class Booking(models.Model):
    """
    Engagement between a parent and a caregiver, optionally for a job.

    Status flow:
    - pending -> confirmed (caregiver/admin confirms)
    - confirmed -> completed (service delivered)
    - pending/confirmed -> cancelled
    """

    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    parent = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='bookings_as_parent',
        help_text=_('Parent who booked the caregiver')
    )

    caregiver = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='bookings_as_caregiver',
        help_text=_('Caregiver providing the service')
    )

    job = models.ForeignKey(
        Job,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings',
        help_text=_('Job posting this booking fulfils, if any')
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    date = models.DateField(_('date'), null=True, blank=True)

    start_time = models.TimeField(_('start time'), null=True, blank=True)

    end_time = models.TimeField(_('end time'), null=True, blank=True)

    total_hours = models.DecimalField(
        _('total hours'),
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_('Stored duration. When empty it is derived from start and end time.')
    )

    hourly_rate = models.DecimalField(_('hourly rate'), max_digits=10, decimal_places=2, null=True, blank=True)

    total_amount = models.DecimalField(_('total amount'), max_digits=10, decimal_places=2, null=True, blank=True)

    address = models.CharField(_('address'), max_length=255, blank=True, default='')

    notes = models.TextField(_('notes'), blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'bookings'
        verbose_name = _('booking')
        verbose_name_plural = _('bookings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='bookings_status_2b7f60_idx'),
            models.Index(fields=['parent', 'status'], name='bookings_parent__91c3ae_idx'),
            models.Index(fields=['caregiver', 'status'], name='bookings_caregiv_6f0d85_idx'),
        ]

    def __str__(self):
        return f"Booking {self.id} ({self.status})"


class Payment(models.Model):
    """
    Financial record for a booking.

    A transition to paid or refunded requires an admin note, and refunded
    is terminal.
    """

    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_DISPUTED = 'disputed'
    STATUS_REFUNDED = 'refunded'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
        (STATUS_DISPUTED, 'Disputed'),
        (STATUS_REFUNDED, 'Refunded'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    booking = models.OneToOneField(
        Booking,
        on_delete=models.PROTECT,
        related_name='payment',
        help_text=_('Booking this payment settles')
    )

    parent = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments_made'
    )

    caregiver = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments_received'
    )

    total_amount = models.DecimalField(
        _('total amount'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'), message=_('Amount cannot be negative.'))]
    )

    payment_status = models.CharField(
        _('payment status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    notes = models.TextField(_('notes'), blank=True, default='')

    refund_reason = models.TextField(_('refund reason'), blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'payments'
        verbose_name = _('payment')
        verbose_name_plural = _('payments')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['payment_status'], name='payments_payment_7c1a39_idx'),
        ]

    def __str__(self):
        return f"Payment {self.id} ({self.payment_status})"


class PaymentProof(models.Model):
    """
    Uploaded proof-of-payment artifact for a booking.

    The file itself lives in the object store; only its path, public URL
    and MIME type are recorded. Review flags are derived on read.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name='payment_proofs'
    )

    storage_path = models.CharField(_('storage path'), max_length=500, null=True, blank=True)

    public_url = models.URLField(_('public URL'), max_length=1000, null=True, blank=True)

    mime_type = models.CharField(_('MIME type'), max_length=100, null=True, blank=True)

    uploaded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_proofs_uploaded'
    )

    uploaded_at = models.DateTimeField(_('uploaded at'), default=timezone.now)

    payment_type = models.CharField(_('payment type'), max_length=30, default='deposit')

    class Meta:
        db_table = 'payment_proofs'
        verbose_name = _('payment proof')
        verbose_name_plural = _('payment proofs')
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"Proof {self.id} for booking {self.booking_id}"


class UserReport(models.Model):
    """
    Misconduct report filed by one user about another.

    Any status may move to any other status. Reviewer and review time are
    stamped together.
    """

    REPORT_TYPE_CHOICES = [
        ('caregiver_misconduct', 'Caregiver misconduct'),
        ('parent_maltreatment', 'Parent maltreatment'),
        ('inappropriate_behavior', 'Inappropriate behavior'),
        ('safety_concern', 'Safety concern'),
        ('payment_dispute', 'Payment dispute'),
        ('other', 'Other'),
    ]

    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('under_review', 'Under review'),
        ('resolved', 'Resolved'),
        ('dismissed', 'Dismissed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    reporter = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports_filed'
    )

    reported_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports_received'
    )

    report_type = models.CharField(_('report type'), max_length=30, choices=REPORT_TYPE_CHOICES)

    category = models.CharField(_('category'), max_length=100, blank=True, default='')

    title = models.CharField(_('title'), max_length=200)

    description = models.TextField(_('description'))

    severity = models.CharField(_('severity'), max_length=10, choices=SEVERITY_CHOICES, default='medium')

    status = models.CharField(_('status'), max_length=20, choices=STATUS_CHOICES, default='pending')

    evidence_urls = models.JSONField(_('evidence URLs'), default=list, blank=True)

    booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports'
    )

    job = models.ForeignKey(
        Job,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports'
    )

    admin_notes = models.TextField(_('admin notes'), blank=True, default='')

    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports_reviewed'
    )

    reviewed_at = models.DateTimeField(_('reviewed at'), null=True, blank=True)

    resolution = models.TextField(_('resolution'), blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'user_reports'
        verbose_name = _('user report')
        verbose_name_plural = _('user reports')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='user_report_status_3e8b12_idx'),
            models.Index(fields=['severity'], name='user_report_severit_a04f7c_idx'),
            models.Index(fields=['reported_user'], name='user_report_reporte_5b2d90_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    def clean(self):
        """
        Validate the report.

        Raises:
            ValidationError: If a user reports themselves or the evidence
                list is not a list
        """
        super().clean()

        if self.reporter_id and self.reporter_id == self.reported_user_id:
            raise ValidationError({'reported_user': _('You cannot report yourself.')})

        if not isinstance(self.evidence_urls, list):
            raise ValidationError({'evidence_urls': _('Evidence URLs must be a list.')})


class AppendOnlyModel(models.Model):
    """Base for tables that only ever receive inserts."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(f"{self._meta.db_table} rows are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(f"{self._meta.db_table} rows are append-only and cannot be deleted.")


class AuditLog(AppendOnlyModel):
    """
    Immutable record of a state-changing admin action.

    ``admin_id`` is a plain id rather than a foreign key so entries outlive
    the accounts they mention.
    """

    admin_id = models.UUIDField(_('admin id'), db_index=True)

    action = models.CharField(_('action'), max_length=100, db_index=True)

    target_id = models.CharField(_('target id'), max_length=64, db_index=True)

    target_type = models.CharField(_('target type'), max_length=50, blank=True, default='')

    metadata = models.JSONField(_('metadata'), default=dict, blank=True)

    created_at = models.DateTimeField(_('created at'), default=timezone.now, db_index=True)

    class Meta:
        db_table = 'audit_logs'
        verbose_name = _('audit log entry')
        verbose_name_plural = _('audit log')
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.action} on {self.target_id} by {self.admin_id}"


class UserStatusHistory(AppendOnlyModel):
    """Per-user timeline of status changes, newest first."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='status_history'
    )

    status = models.CharField(_('status'), max_length=20, choices=User.STATUS_CHOICES)

    reason = models.TextField(_('reason'), blank=True, default='')

    changed_by = models.UUIDField(
        _('changed by'),
        null=True,
        blank=True,
        help_text=_('Admin who made the change. Empty for automatic reactivation.')
    )

    changed_at = models.DateTimeField(_('changed at'), default=timezone.now)

    class Meta:
        db_table = 'user_status_history'
        verbose_name = _('user status change')
        verbose_name_plural = _('user status history')
        ordering = ['-changed_at', '-id']
        indexes = [
            models.Index(fields=['user', '-changed_at'], name='user_status_user_id_9d4c27_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.status}"


class SystemSettings(models.Model):
    """Process-wide marketplace switches, stored as a single row with id 1."""

    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)

    maintenance_mode = models.BooleanField(_('maintenance mode'), default=False)

    registration_enabled = models.BooleanField(_('registration enabled'), default=True)

    email_verification_required = models.BooleanField(_('email verification required'), default=True)

    background_check_required = models.BooleanField(_('background check required'), default=True)

    updated_by = models.UUIDField(_('updated by'), null=True, blank=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        db_table = 'system_settings'
        verbose_name = _('system settings')
        verbose_name_plural = _('system settings')

    def __str__(self):
        return 'System settings'

    def clean(self):
        super().clean()
        if self.id != self.SINGLETON_ID:
            raise ValidationError({'id': _('System settings is a single row with id 1.')})
