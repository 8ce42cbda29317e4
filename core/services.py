"""
Entity services for the marketplace tables.

Each service wraps the persistence gateway for one table: list with
pagination and search, single-row lookups that return ``None`` when the row
is missing, and narrow update helpers. Status writes go through
``compare_and_set`` so a concurrent change is detected instead of silently
overwritten.
"""

import logging
import math
import uuid
from datetime import time

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from . import gateway
from .conf import get_setting
from .exceptions import ValidationError
from .gateway import Embed, Search
from .proofs import PROOF_STATUS_NEEDS_REVIEW, normalize_payment

logger = logging.getLogger(__name__)

USER_SUMMARY_COLUMNS = ('id', 'name', 'email', 'role', 'status', 'profile_image')

CAREGIVER_PROFILE_COLUMNS = (
    'id', 'bio', 'experience_years', 'hourly_rate', 'rating',
    'verification', 'trust_score', 'is_active',
)

PROOF_COLUMNS = (
    'id', 'booking_id', 'storage_path', 'public_url', 'mime_type',
    'uploaded_by_id', 'uploaded_at', 'payment_type',
)

SYSTEM_SETTINGS_DEFAULTS = {
    'maintenance_mode': False,
    'registration_enabled': True,
    'email_verification_required': True,
    'background_check_required': True,
}


def _positive_int(value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def clamp_page(page, limit, default_limit):
    """
    Normalize pagination input.

    Missing, non-numeric, zero or negative values fall back to page 1 and
    ``default_limit``. The limit is capped at ``MAX_PAGE_SIZE``.

    Returns:
        tuple: (page, limit)
    """
    page = _positive_int(page) or 1
    limit = min(_positive_int(limit) or default_limit, get_setting('MAX_PAGE_SIZE'))
    return page, limit


def as_uuid(value):
    """Return ``value`` as a UUID, or None when it is not one."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def normalize_job_status(status):
    """
    Map transient job vocabulary (pending, open, confirmed, inactive) onto
    the persisted job statuses. Persisted values pass through unchanged.
    """
    if status is None:
        return None
    status = str(status).strip().lower()
    return get_setting('JOB_STATUS_ALIASES').get(status, status)


def _clock_hours(value):
    if value is None or value == '':
        return None
    if isinstance(value, time):
        return value.hour + value.minute / 60 + value.second / 3600
    parts = str(value).split(':')
    try:
        hours = int(parts[0])
        minutes = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None
    return hours + minutes / 60


def compute_total_hours(booking):
    """
    Duration of a booking in hours.

    The stored ``total_hours`` wins when positive; otherwise the difference
    between ``end_time`` and ``start_time`` (HH:MM) rounded to two decimals;
    otherwise 0.
    """
    try:
        stored = float(booking.get('total_hours') or 0)
    except (TypeError, ValueError):
        stored = 0
    if stored > 0:
        return round(stored, 2)

    start = _clock_hours(booking.get('start_time'))
    end = _clock_hours(booking.get('end_time'))
    if start is not None and end is not None and end > start:
        return round(end - start, 2)
    return 0


class EntityService:
    """
    Base class for table services.

    Subclasses set ``table`` and optionally ``search_columns``,
    ``list_embeds``, ``detail_embeds`` and ``order_by``, and may override
    ``shape`` to add derived fields to every row they return.
    """

    table = None
    order_by = ('-created_at',)
    search_columns = ()
    list_embeds = ()
    detail_embeds = ()

    @property
    def default_limit(self):
        return get_setting('PAGE_SIZE_DEFAULTS').get(self.table, 20)

    def shape(self, row):
        return row

    def _log_embed_fallback(self, exc, embed):
        names = ', '.join(relation.name for relation in embed)
        logger.warning(f"{exc}. Retrying '{self.table}' without embeds and merging {names} separately.")

    def _find(self, where=None, *, search=None, any_of=None, offset=0, limit=None, embed=(), count=False):
        """
        Read rows, joining ``embed`` relations when the gateway can express
        them in one query and merging them with a batched second query
        when it cannot. Either way the rows have the same shape.
        """
        options = {
            'search': search,
            'any_of': any_of,
            'order_by': self.order_by,
            'offset': offset,
            'limit': limit,
            'count': count,
        }
        try:
            return gateway.find(self.table, where, embed=embed, **options)
        except gateway.GatewayError as exc:
            if exc.code != 'unresolvable_embed':
                raise
            self._log_embed_fallback(exc, embed)

        page = gateway.find(self.table, where, **options)
        for relation in embed:
            gateway.attach(page.rows, relation)
        return page

    def _get(self, where, embed=()):
        """Single row matching ``where`` or None."""
        try:
            row = gateway.get(self.table, where, embed=embed)
        except gateway.RowNotFound:
            return None
        except gateway.GatewayError as exc:
            if exc.code != 'unresolvable_embed':
                raise
            self._log_embed_fallback(exc, embed)
            try:
                row = gateway.get(self.table, where)
            except gateway.RowNotFound:
                return None
            for relation in embed:
                gateway.attach([row], relation)
        return self.shape(row)

    def _paginate(self, where, page, limit, search=None, any_of=None):
        page, limit = clamp_page(page, limit, self.default_limit)
        result = self._find(
            where,
            search=search,
            any_of=any_of,
            offset=(page - 1) * limit,
            limit=limit,
            embed=self.list_embeds,
            count=True,
        )
        total = result.count
        return {
            'items': [self.shape(row) for row in result.rows],
            'total': total,
            'page': page,
            'limit': limit,
            'total_pages': math.ceil(total / limit) if total else 0,
        }

    def find_by_id(self, record_id, detailed=False):
        """
        Look a row up by id.

        Args:
            record_id: Primary key
            detailed: Embed the related rows listed in ``detail_embeds``

        Returns:
            dict or None
        """
        return self._get({'id': record_id}, embed=self.detail_embeds if detailed else ())

    def create(self, data):
        return self.shape(gateway.insert(self.table, data))

    def update(self, record_id, patch):
        """Patch a row by id. Returns the updated row or None if it does not exist."""
        try:
            return self.shape(gateway.update(self.table, {'id': record_id}, patch))
        except gateway.RowNotFound:
            return None

    def compare_and_set(self, record_id, column, expected, patch):
        """
        Patch a row only while ``column`` still holds ``expected``.

        Returns:
            dict: The updated row, or None when the row is gone or
            ``column`` changed since it was read
        """
        try:
            return self.shape(gateway.update(self.table, {'id': record_id, column: expected}, patch))
        except gateway.RowNotFound:
            return None

    def _filters(self, filters, names):
        """Equality filters for ``names`` present in ``filters``, ignoring blanks and 'all'."""
        filters = filters or {}
        return {
            name: filters[name]
            for name in names
            if filters.get(name) not in (None, '', 'all')
        }


class UserService(EntityService):
    table = 'users'
    search_columns = ('name', 'email')
    detail_embeds = (
        Embed(
            'caregiver_profile',
            'caregiver_profiles',
            local_key='id',
            remote_key='user_id',
            columns=CAREGIVER_PROFILE_COLUMNS,
        ),
    )

    def find_by_email(self, email):
        return self._get({'email': (email or '').strip().lower()})

    def list(self, filters=None, page=None, limit=None):
        """
        Page through users.

        Args:
            filters: Optional ``role``, ``status`` and ``search`` (name or email)
            page: 1-based page number
            limit: Page size
        """
        filters = filters or {}
        where = self._filters(filters, ('role', 'status'))
        return self._paginate(where, page, limit, search=Search(filters.get('search'), self.search_columns))

    def counts(self):
        """Number of users overall and per status."""
        counts = {'total': gateway.count(self.table)}
        for status in ('active', 'suspended', 'banned', 'inactive'):
            counts[status] = gateway.count(self.table, {'status': status})
        return counts

    def count_by_role(self, role):
        return gateway.count(self.table, {'role': role})

    def recent(self, limit=5):
        return [self.shape(row) for row in self._find(limit=limit).rows]

    def find_expired_suspensions(self, now):
        """Suspended accounts whose suspension ended before ``now``."""
        where = {'status': 'suspended', 'suspension_end_date__lt': now}
        return [self.shape(row) for row in self._find(where).rows]

    def create(self, data, created_by=None):
        """
        Create an account through the auth user manager so the password is hashed.

        Raises:
            ValidationError: If the email is already registered
        """
        User = get_user_model()
        email = data['email'].strip().lower()

        if self.find_by_email(email) is not None:
            raise ValidationError('A user with that email already exists.')

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=data.get('username') or email,
                    email=email,
                    password=data.get('password'),
                    name=data.get('name', ''),
                    phone=data.get('phone', ''),
                    role=data.get('role', User.ROLE_PARENT),
                    created_by=created_by,
                )
        except IntegrityError as exc:
            raise ValidationError('A user with that email already exists.') from exc

        return self.find_by_id(user.pk)

    def update(self, record_id, patch):
        try:
            return super().update(record_id, patch)
        except gateway.GatewayError as exc:
            if exc.code == 'duplicate_key':
                raise ValidationError('A user with that email already exists.') from exc
            raise


class CaregiverProfileService(EntityService):
    table = 'caregiver_profiles'

    def find_by_user(self, user_id):
        return self._get({'user_id': user_id})

    def upsert(self, user_id, data):
        """Create the caregiver's profile on first write, update it afterwards."""
        return gateway.upsert(self.table, dict(data, user_id=user_id), on_conflict=('user_id',))


class JobService(EntityService):
    table = 'jobs'
    search_columns = ('title', 'description', 'location')
    list_embeds = detail_embeds = (
        Embed('parent', 'users', local_key='parent_id', columns=USER_SUMMARY_COLUMNS),
        Embed('caregiver', 'users', local_key='caregiver_id', columns=USER_SUMMARY_COLUMNS),
    )

    def list(self, filters=None, page=None, limit=None):
        """
        Page through jobs.

        Args:
            filters: Optional ``status`` (transient names accepted),
                ``parent_id``, ``caregiver_id`` and ``search``
        """
        filters = dict(filters or {})
        if filters.get('status') not in (None, '', 'all'):
            filters['status'] = normalize_job_status(filters['status'])
        where = self._filters(filters, ('status', 'parent_id', 'caregiver_id'))
        return self._paginate(where, page, limit, search=Search(filters.get('search'), self.search_columns))

    def delete(self, job_id):
        return gateway.delete(self.table, {'id': job_id})


class BookingService(EntityService):
    table = 'bookings'
    search_columns = ('address', 'parent.name', 'parent.email', 'caregiver.name', 'caregiver.email')
    list_embeds = detail_embeds = (
        Embed('parent', 'users', local_key='parent_id', columns=USER_SUMMARY_COLUMNS),
        Embed('caregiver', 'users', local_key='caregiver_id', columns=USER_SUMMARY_COLUMNS),
        Embed('job', 'jobs', local_key='job_id', columns=('id', 'title', 'status')),
    )

    def shape(self, row):
        row['total_hours'] = compute_total_hours(row)
        return row

    def list(self, filters=None, page=None, limit=None):
        filters = filters or {}
        where = self._filters(filters, ('status', 'parent_id', 'caregiver_id', 'job_id'))
        return self._paginate(where, page, limit, search=Search(filters.get('search'), self.search_columns))


class PaymentProofService(EntityService):
    table = 'payment_proofs'
    order_by = ('-uploaded_at',)

    def for_booking(self, booking_id):
        return self._find({'booking_id': booking_id}).rows

    def delete(self, proof_id):
        return gateway.delete(self.table, {'id': proof_id})


class PaymentService(EntityService):
    """
    Payments always come back with their proof set and the derived review
    state (``proofs``, ``proof_issues``, ``proof_status``).
    """

    table = 'payments'
    search_columns = ('parent.name', 'parent.email', 'caregiver.name', 'caregiver.email')
    list_embeds = detail_embeds = (
        Embed('parent', 'users', local_key='parent_id', columns=USER_SUMMARY_COLUMNS),
        Embed('caregiver', 'users', local_key='caregiver_id', columns=USER_SUMMARY_COLUMNS),
        Embed('booking', 'bookings', local_key='booking_id', columns=('id', 'status', 'date', 'start_time', 'end_time')),
    )
    proof_embed = Embed(
        'proofs',
        'payment_proofs',
        local_key='booking_id',
        remote_key='booking_id',
        columns=PROOF_COLUMNS,
        many=True,
    )

    def _with_proofs(self, rows):
        gateway.attach(rows, self.proof_embed)
        return [normalize_payment(row, row.pop('proofs')) for row in rows]

    def list(self, filters=None, page=None, limit=None):
        """
        Page through payments with proof review.

        ``search`` matches parent or caregiver name/email, or the exact
        booking id when the term is a UUID. A ``status`` of ``all`` means
        no status filter.

        Returns:
            dict: Standard page plus ``proof_summary.suspicious_count``
        """
        filters = filters or {}
        where = {}
        if filters.get('status') not in (None, '', 'all'):
            where['payment_status'] = filters['status']

        search = Search(filters.get('search'), self.search_columns)
        booking_id = as_uuid(search.term) if search else None
        any_of = [{'booking_id': booking_id}] if booking_id else None

        result = self._paginate(where, page, limit, search=search, any_of=any_of)
        result['items'] = self._with_proofs(result['items'])
        result['proof_summary'] = {
            'suspicious_count': sum(
                1 for item in result['items'] if item['proof_status'] == PROOF_STATUS_NEEDS_REVIEW
            ),
        }
        return result

    def find_by_id(self, record_id, detailed=True):
        row = super().find_by_id(record_id, detailed=detailed)
        if row is None:
            return None
        return self._with_proofs([row])[0]


class ReportService(EntityService):
    table = 'user_reports'
    search_columns = ('title', 'description')
    list_embeds = detail_embeds = (
        Embed('reporter', 'users', local_key='reporter_id', columns=USER_SUMMARY_COLUMNS),
        Embed('reported_user', 'users', local_key='reported_user_id', columns=USER_SUMMARY_COLUMNS),
        Embed('reviewed_by', 'users', local_key='reviewed_by_id', columns=('id', 'name', 'email')),
    )

    STATUSES = ('pending', 'under_review', 'resolved', 'dismissed')
    SEVERITIES = ('low', 'medium', 'high', 'critical')
    REPORT_TYPES = (
        'caregiver_misconduct', 'parent_maltreatment', 'inappropriate_behavior',
        'safety_concern', 'payment_dispute', 'other',
    )

    def list(self, filters=None, page=None, limit=None):
        filters = filters or {}
        where = self._filters(filters, ('status', 'severity', 'report_type', 'category', 'reported_user_id'))
        return self._paginate(where, page, limit, search=Search(filters.get('search'), self.search_columns))

    def list_by_reporter(self, reporter_id, page=None, limit=None):
        return self._paginate({'reporter_id': reporter_id}, page, limit)

    def stats(self):
        """Report counts overall and grouped by status, severity and type."""
        return {
            'total': gateway.count(self.table),
            'by_status': {status: gateway.count(self.table, {'status': status}) for status in self.STATUSES},
            'by_severity': {
                severity: gateway.count(self.table, {'severity': severity}) for severity in self.SEVERITIES
            },
            'by_type': {
                report_type: gateway.count(self.table, {'report_type': report_type})
                for report_type in self.REPORT_TYPES
            },
        }


class UserStatusHistoryService(EntityService):
    table = 'user_status_history'
    order_by = ('-changed_at', '-id')

    # changed_by is a plain id column, so the admin summary is merged in a
    # second query.
    actor_embed = Embed('changed_by_user', 'users', local_key='changed_by', columns=('id', 'name', 'email'))

    def create(self, user_id, status, reason=None, changed_by=None):
        return gateway.insert(self.table, {
            'user_id': user_id,
            'status': status,
            'reason': reason or '',
            'changed_by': changed_by,
        })

    def list_by_user(self, user_id, limit=20):
        return self._find({'user_id': user_id}, limit=limit, embed=(self.actor_embed,)).rows


class SystemSettingsService(EntityService):
    table = 'system_settings'
    order_by = ('id',)

    def get(self):
        """Current settings, with defaults for any flag that was never stored."""
        row = self._get({'id': 1})
        settings = dict(SYSTEM_SETTINGS_DEFAULTS)
        if row:
            settings.update({key: row[key] for key in SYSTEM_SETTINGS_DEFAULTS})
            settings['updated_at'] = row['updated_at']
            settings['updated_by'] = row['updated_by']
        return settings

    def update(self, patch, updated_by=None):
        """Upsert the singleton row. Flags missing from ``patch`` keep their current value."""
        current = self.get()
        row = {key: current[key] for key in SYSTEM_SETTINGS_DEFAULTS}
        row.update({key: value for key, value in patch.items() if key in SYSTEM_SETTINGS_DEFAULTS})
        row.update({'id': 1, 'updated_by': updated_by})
        gateway.upsert(self.table, row)
        return self.get()
