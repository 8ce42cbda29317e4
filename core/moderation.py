"""
Admin account, job and settings management.

Thin operations around the entity services that still need the admin
guards and an audit entry: creating and editing accounts, soft deleting
them, caregiver document verification, job maintenance, system settings
and user-filed reports.
"""

import logging

from django.db import transaction
from django.utils import timezone

from .exceptions import Forbidden, NotFound, ValidationError
from .services import (
    CaregiverProfileService,
    JobService,
    ReportService,
    SystemSettingsService,
    UserService,
    UserStatusHistoryService,
)
from .transitions import (
    ADMIN_ROLES,
    audit_log,
    guard_target_user,
    require_admin,
    set_job_status,
    update_user_status,
)

logger = logging.getLogger(__name__)

DELETED_ACCOUNT_REASON = 'Account deleted by administrator'

VERIFICATION_STATUSES = ('pending', 'verified', 'rejected')

USER_PROFILE_FIELDS = ('name', 'email', 'phone', 'profile_image', 'role')

JOB_FIELDS = ('title', 'description', 'location', 'budget', 'hourly_rate', 'parent_id', 'caregiver_id')


def _require_superadmin_for_roles(actor, *roles):
    if any(role in ADMIN_ROLES for role in roles) and not actor.is_superadmin:
        raise Forbidden('Only a superadmin can grant or change admin roles.')


def create_user(data, actor):
    """
    Create an account on behalf of an admin.

    Args:
        data: email, password, name, phone and role
        actor: Acting admin

    Returns:
        dict: The created user
    """
    require_admin(actor)
    _require_superadmin_for_roles(actor, data.get('role'))

    user = UserService().create(data, created_by=actor.id)

    audit_log.create(
        actor.id, 'CREATE_USER', user['id'],
        {'email': user['email'], 'role': user['role']},
        target_type='user',
    )
    logger.info(f"User created by admin. User ID: {user['id']}, Role: {user['role']}, Actor: {actor.email}")
    return user


def update_user(user_id, data, actor):
    """
    Edit an account's profile and, explicitly, its role.

    A ``status`` in ``data`` is handed to ``update_user_status`` so it gets
    the full lifecycle treatment. The profile patch and the status change
    commit together: a rejected status leaves the profile untouched.

    Returns:
        dict: The updated user with its caregiver profile
    """
    require_admin(actor)
    users = UserService()
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFound('User not found')

    guard_target_user(actor, user)

    patch = {field: data[field] for field in USER_PROFILE_FIELDS if field in data}
    if 'email' in patch:
        patch['email'] = patch['email'].strip().lower()

    if 'role' in patch and patch['role'] != user['role']:
        _require_superadmin_for_roles(actor, patch['role'], user['role'])

    changes = {
        field: {'from': user[field], 'to': value}
        for field, value in patch.items()
        if user[field] != value
    }

    with transaction.atomic():
        if patch:
            users.update(user_id, patch)

        if data.get('status') and data['status'] != user['status']:
            update_user_status(
                user_id, data['status'], actor,
                reason=data.get('status_reason') or data.get('reason'),
                duration_days=data.get('duration_days'),
            )

    if changes:
        audit_log.create(actor.id, 'UPDATE_USER', user_id, {'changes': changes}, target_type='user')
        logger.info(f"User updated. User ID: {user_id}, Fields: {', '.join(changes)}, Actor: {actor.email}")

    return users.find_by_id(user_id, detailed=True)


def delete_user(user_id, actor):
    """
    Soft delete an account: mark it inactive and stamp who deleted it.

    Raises:
        Forbidden: Deleting yourself, or an admin account without superadmin rights
        NotFound: No such user
    """
    require_admin(actor)
    users = UserService()
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFound('User not found')

    if str(user['id']) == str(actor.id):
        raise Forbidden('You cannot delete your own account.')

    guard_target_user(actor, user)

    now = timezone.now()
    with transaction.atomic():
        users.update(user_id, {
            'status': 'inactive',
            'status_reason': DELETED_ACCOUNT_REASON,
            'status_updated_at': now,
            'status_updated_by': actor.id,
            'deleted_at': now,
            'deleted_by': actor.id,
            'is_active': False,
        })
        UserStatusHistoryService().create(user_id, 'inactive', DELETED_ACCOUNT_REASON, actor.id)

    audit_log.create(
        actor.id, 'DELETE_USER', user_id,
        {'email': user['email'], 'previous_status': user['status']},
        target_type='user',
    )
    logger.info(f"User soft deleted. User ID: {user_id}, Actor: {actor.email} (ID: {actor.id})")
    return users.find_by_id(user_id)


def verify_caregiver_documents(user_id, status, actor, notes=None):
    """
    Record the outcome of a caregiver's document review.

    A verified caregiver's profile becomes active in search.

    Returns:
        dict: The caregiver with the updated profile
    """
    require_admin(actor)
    if status not in VERIFICATION_STATUSES:
        raise ValidationError(f"Invalid verification status. Must be one of: {', '.join(VERIFICATION_STATUSES)}.")

    users = UserService()
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFound('User not found')
    if user['role'] != 'caregiver':
        raise ValidationError('Documents can only be verified for caregivers.')

    verification = {
        'status': status,
        'verified_by': str(actor.id),
        'verified_at': timezone.now().isoformat(),
        'notes': notes or '',
    }
    CaregiverProfileService().upsert(user_id, {
        'verification': verification,
        'is_active': status == 'verified',
    })

    audit_log.create(
        actor.id, 'VERIFY_PROVIDER_DOCUMENTS', user_id,
        {'status': status, 'notes': notes or ''},
        target_type='user',
    )
    logger.info(f"Caregiver documents reviewed. User ID: {user_id}, Status: {status}, Actor: {actor.email}")
    return users.find_by_id(user_id, detailed=True)


def create_job(data, actor):
    """Post a job on behalf of a parent."""
    require_admin(actor)
    jobs = JobService()
    job = jobs.create({field: data[field] for field in JOB_FIELDS if field in data})

    audit_log.create(actor.id, 'CREATE_JOB', job['id'], {'title': job['title']}, target_type='job')
    logger.info(f"Job created by admin. Job ID: {job['id']}, Actor: {actor.email}")
    return jobs.find_by_id(job['id'], detailed=True)


def update_job(job_id, data, actor):
    """
    Edit a job. A ``status`` in ``data`` must follow the allowed job edges;
    when it does not, none of the other fields are written either.
    """
    require_admin(actor)
    jobs = JobService()
    job = jobs.find_by_id(job_id)
    if job is None:
        raise NotFound('Job not found')

    patch = {field: data[field] for field in JOB_FIELDS if field in data}
    updated = None
    with transaction.atomic():
        if patch:
            jobs.update(job_id, patch)
        if data.get('status'):
            updated = set_job_status(job_id, data['status'], actor, reason=data.get('reason'))

    if patch:
        audit_log.create(actor.id, 'UPDATE_JOB', job_id, {'fields': sorted(patch)}, target_type='job')
        logger.info(f"Job updated by admin. Job ID: {job_id}, Fields: {', '.join(sorted(patch))}, Actor: {actor.email}")

    return updated or jobs.find_by_id(job_id, detailed=True)


def delete_job(job_id, actor):
    require_admin(actor)
    jobs = JobService()
    job = jobs.find_by_id(job_id)
    if job is None:
        raise NotFound('Job not found')

    jobs.delete(job_id)
    audit_log.create(
        actor.id, 'DELETE_JOB', job_id,
        {'title': job['title'], 'status': job['status']},
        target_type='job',
    )
    logger.info(f"Job deleted. Job ID: {job_id}, Actor: {actor.email} (ID: {actor.id})")


def update_system_settings(patch, actor):
    require_admin(actor)
    service = SystemSettingsService()
    before = service.get()
    settings = service.update(patch, updated_by=actor.id)

    changes = {
        key: {'from': before[key], 'to': settings[key]}
        for key in patch
        if key in before and before[key] != settings[key]
    }
    audit_log.create(actor.id, 'UPDATE_SETTINGS', 1, {'changes': changes}, target_type='system_settings')
    logger.info(f"System settings updated. Changes: {changes}, Actor: {actor.email}")
    return settings


def file_report(reporter, data):
    """
    File a misconduct report about another user.

    Args:
        reporter: Actor filing the report
        data: reported_user_id, report_type, title, description and the
            optional category, severity, evidence_urls, booking_id, job_id

    Returns:
        dict: The stored report
    """
    for field in ('reported_user_id', 'report_type', 'title', 'description'):
        if not data.get(field):
            raise ValidationError(f'{field} is required')

    if str(data['reported_user_id']) == str(reporter.id):
        raise ValidationError('You cannot report yourself.')

    if UserService().find_by_id(data['reported_user_id']) is None:
        raise NotFound('Reported user not found')

    reports = ReportService()
    report = reports.create({
        'reporter_id': reporter.id,
        'reported_user_id': data['reported_user_id'],
        'report_type': data['report_type'],
        'category': data.get('category') or '',
        'title': data['title'],
        'description': data['description'],
        'severity': data.get('severity') or 'medium',
        'evidence_urls': list(data.get('evidence_urls') or []),
        'booking_id': data.get('booking_id'),
        'job_id': data.get('job_id'),
    })

    logger.info(
        f"Report filed. Report ID: {report['id']}, Type: {report['report_type']}, "
        f"Reporter: {reporter.id}, Reported User: {data['reported_user_id']}"
    )
    return reports.find_by_id(report['id'], detailed=True)


def dashboard_stats(actor, recent_limit=5):
    """
    Headline numbers for the admin dashboard.

    Returns:
        dict: parent and caregiver counts, users per status and the newest accounts
    """
    require_admin(actor)
    users = UserService()
    return {
        'total_parents': users.count_by_role('parent'),
        'total_caregivers': users.count_by_role('caregiver'),
        'users': users.counts(),
        'recent_users': users.recent(limit=recent_limit),
    }
