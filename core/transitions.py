"""
Status-transition orchestrator.

Every status change made by an admin goes through this module:

- job and booking actions, allowed only from a fixed set of current states
- the user suspension / ban / reactivation lifecycle, plus the sweep that
  lifts expired suspensions
- payment status review and refunds
- report review

Each successful change writes the new status with a compare-and-swap on
the status that was read, then appends an audit entry. Rejected changes
raise before anything is written.
"""

import logging
from collections import namedtuple
from datetime import timedelta

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import APIException

from . import gateway, notifications
from .audit import AuditLogService
from .conf import get_setting
from .exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from .services import (
    BookingService,
    JobService,
    PaymentService,
    ReportService,
    UserService,
    UserStatusHistoryService,
    normalize_job_status,
)

logger = logging.getLogger(__name__)


Transition = namedtuple('Transition', ['allowed', 'target', 'audit_action', 'hint'])

JOB_STATUSES = ('active', 'filled', 'cancelled', 'completed')

# Job targets come from the JOB_ACTION_TARGETS setting.
JOB_ACTIONS = {
    'approve': Transition(
        ('pending', 'open', 'active'), None, 'APPROVE_JOB',
        'Only pending, open or active jobs can be approved.',
    ),
    'reject': Transition(
        ('pending', 'open', 'active'), None, 'REJECT_JOB',
        'Only pending, open or active jobs can be rejected.',
    ),
    'cancel': Transition(
        ('open', 'confirmed', 'pending', 'active'), None, 'CANCEL_JOB',
        'Only open, confirmed, pending or active jobs can be cancelled.',
    ),
    'complete': Transition(
        ('confirmed', 'open', 'active'), None, 'COMPLETE_JOB',
        'Only confirmed, open or active jobs can be completed.',
    ),
    'reopen': Transition(
        ('cancelled', 'completed', 'inactive'), None, 'REOPEN_JOB',
        'Only cancelled, completed or inactive jobs can be reopened.',
    ),
}

BOOKING_STATUSES = ('pending', 'confirmed', 'completed', 'cancelled')

BOOKING_ACTIONS = {
    'confirm': Transition(
        ('pending',), 'confirmed', 'CONFIRM_BOOKING',
        'Only pending bookings can be confirmed.',
    ),
    # Starting a booking does not change its status; it is only recorded.
    'start': Transition(
        ('confirmed',), 'confirmed', 'START_BOOKING',
        'Only confirmed bookings can be started.',
    ),
    'complete': Transition(
        ('confirmed',), 'completed', 'COMPLETE_BOOKING',
        'Only confirmed bookings can be completed.',
    ),
    'cancel': Transition(
        ('pending', 'confirmed'), 'cancelled', 'CANCEL_BOOKING',
        'Only pending or confirmed bookings can be cancelled.',
    ),
}

USER_STATUSES = ('active', 'suspended', 'banned', 'inactive')
BULK_USER_STATUSES = ('active', 'suspended', 'banned')
ADMIN_ROLES = ('admin', 'superadmin')

SUSPENSION_COMPLETED_REASON = 'Suspension period completed'

PAYMENT_STATUSES = ('pending', 'paid', 'disputed', 'refunded')
NOTE_REQUIRED_PAYMENT_STATUSES = ('paid', 'refunded')

audit_log = AuditLogService()


def require_admin(actor):
    """
    Raises:
        Forbidden: Unless ``actor`` is an admin or superadmin
    """
    if actor is None or not actor.is_admin:
        raise Forbidden('Admin privileges required.')


def guard_target_user(actor, user):
    """
    Only a superadmin may modify admin or superadmin accounts.

    Raises:
        Forbidden: If ``user`` is an admin account and ``actor`` is not a superadmin
    """
    if user['role'] in ADMIN_ROLES and not actor.is_superadmin:
        logger.warning(
            f"Blocked modification of admin account. "
            f"Target: {user['id']} ({user['role']}), Actor: {actor.email} (ID: {actor.id})"
        )
        raise Forbidden('Cannot modify admin accounts')


def job_target(action):
    """Persisted target status for a job action, from ``JOB_ACTION_TARGETS``."""
    target = normalize_job_status(get_setting('JOB_ACTION_TARGETS').get(action))
    if target not in JOB_STATUSES:
        raise ImproperlyConfigured(
            f"JOB_ACTION_TARGETS maps '{action}' to '{target}', which is not a job status"
        )
    return target


def _apply_transition(service, kind, record_id, action, transition, target, actor, reason,
                      normalize=None):
    """
    Check the current status against ``transition.allowed``, write
    ``target`` with a compare-and-swap and record the change.

    Returns:
        dict: The re-read entity with its related rows

    Raises:
        NotFound: If the entity does not exist
        InvalidTransition: If the current status is not allowed, or it
            changed between the read and the write
    """
    normalize = normalize or (lambda status: status)

    record = service.find_by_id(record_id)
    if record is None:
        raise NotFound(f'{kind.capitalize()} not found')

    current = record['status']
    allowed = {normalize(status) for status in transition.allowed}

    if normalize(current) not in allowed:
        logger.warning(
            f"Rejected {kind} transition. {kind.capitalize()} ID: {record_id}, "
            f"Action: {action}, Edge: {current} -> {target}, Actor: {actor.email} (ID: {actor.id})"
        )
        raise InvalidTransition(
            f"Cannot {action} {kind} in status '{current}' ({current} -> {target}). {transition.hint}"
        )

    if target != current:
        updated = service.compare_and_set(record_id, 'status', current, {'status': target})
        if updated is None:
            raise InvalidTransition(
                f"{kind.capitalize()} status changed while this request was processed. Reload and try again."
            )

    audit_log.create(
        actor.id,
        transition.audit_action,
        record_id,
        {'from': current, 'to': target, 'reason': reason},
        target_type=kind,
    )

    logger.info(
        f"{kind.capitalize()} status updated. {kind.capitalize()} ID: {record_id}, "
        f"Action: {action}, Old Status: {current}, New Status: {target}, "
        f"Actor: {actor.email} (ID: {actor.id})"
    )

    return service.find_by_id(record_id, detailed=True)


def _direct_edges(actions, target_for):
    """
    Allowed current states for moving straight to each target status,
    collected from the actions that change status.
    """
    edges = {}
    for name, transition in actions.items():
        target = target_for(name)
        if target in transition.allowed:
            continue
        edges.setdefault(target, []).extend(transition.allowed)
    return edges


def transition_job(job_id, action, actor, reason=None):
    """
    Run a named job action (approve, reject, cancel, complete, reopen).

    Args:
        job_id: Job primary key
        action: Action name
        actor: Acting admin
        reason: Optional free text stored in the audit entry

    Returns:
        dict: The updated job with parent and caregiver summaries
    """
    require_admin(actor)
    transition = JOB_ACTIONS.get(action)
    if transition is None:
        raise ValidationError(f"Unknown job action '{action}'.")

    return _apply_transition(
        JobService(), 'job', job_id, action, transition, job_target(action), actor, reason,
        normalize=normalize_job_status,
    )


def set_job_status(job_id, status, actor, reason=None):
    """
    Move a job straight to ``status``, accepted only along the edges the
    named actions allow. Transient names are mapped first.
    """
    require_admin(actor)
    target = normalize_job_status(status)
    if target not in JOB_STATUSES:
        raise ValidationError(f"Invalid job status. Must be one of: {', '.join(JOB_STATUSES)}.")

    allowed = _direct_edges(JOB_ACTIONS, job_target).get(target, ())
    transition = Transition(
        tuple(allowed), target, 'UPDATE_JOB_STATUS',
        f"Jobs can move to '{target}' only from: "
        f"{', '.join(sorted({normalize_job_status(s) for s in allowed})) or 'nowhere'}.",
    )
    return _apply_transition(
        JobService(), 'job', job_id, 'update', transition, target, actor, reason,
        normalize=normalize_job_status,
    )


def transition_booking(booking_id, action, actor, reason=None):
    """Run a named booking action (confirm, start, complete, cancel)."""
    require_admin(actor)
    transition = BOOKING_ACTIONS.get(action)
    if transition is None:
        raise ValidationError(f"Unknown booking action '{action}'.")

    return _apply_transition(
        BookingService(), 'booking', booking_id, action, transition, transition.target, actor, reason,
    )


def set_booking_status(booking_id, status, actor, reason=None):
    """Move a booking straight to ``status`` along the allowed edges."""
    require_admin(actor)
    if status not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid booking status. Must be one of: {', '.join(BOOKING_STATUSES)}.")

    allowed = _direct_edges(BOOKING_ACTIONS, lambda name: BOOKING_ACTIONS[name].target).get(status, ())
    transition = Transition(
        tuple(allowed), status, 'UPDATE_BOOKING_STATUS',
        f"Bookings can move to '{status}' only from: {', '.join(sorted(set(allowed))) or 'nowhere'}.",
    )
    return _apply_transition(BookingService(), 'booking', booking_id, 'update', transition, status, actor, reason)


def _suspension_days(duration_days):
    if duration_days in (None, ''):
        return get_setting('DEFAULT_SUSPENSION_DAYS')
    try:
        days = int(duration_days)
    except (TypeError, ValueError):
        raise ValidationError('duration_days must be a positive integer.') from None
    if days <= 0:
        raise ValidationError('duration_days must be a positive integer.')
    return days


def update_user_status(user_id, status, actor, reason=None, duration_days=None,
                       audit_action='UPDATE_USER_STATUS'):
    """
    Change an account's status.

    Suspending sets ``suspension_end_date`` to now plus ``duration_days``
    (default from settings), increments ``suspension_count`` and stamps
    ``last_suspension_at``. Reactivating clears the end date. The status
    write and its history row commit together; the audit entry and the
    notification email follow and never fail the change.

    Args:
        user_id: Target account id
        status: active, suspended, banned or inactive
        actor: Acting admin
        reason: Reason shown to the user and kept in history
        duration_days: Suspension length in days
        audit_action: Audit action name (bulk updates pass their own)

    Returns:
        dict: The updated user row

    Raises:
        Forbidden: Actor is not an admin, or the target is an admin account
            and the actor is not a superadmin
        ValidationError: Unknown status or bad duration
        NotFound: No such user
        InvalidTransition: The status changed concurrently
    """
    require_admin(actor)
    if status not in USER_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(USER_STATUSES)}.")

    users = UserService()
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFound('User not found')

    guard_target_user(actor, user)

    now = timezone.now()
    reason = (reason or '').strip()
    patch = {
        'status': status,
        'status_reason': reason,
        'status_updated_at': now,
        'status_updated_by': actor.id,
    }

    days = None
    if status == 'suspended':
        days = _suspension_days(duration_days)
        patch.update({
            'suspension_end_date': now + timedelta(days=days),
            'suspension_count': F('suspension_count') + 1,
            'last_suspension_at': now,
        })
    elif status == 'active':
        patch['suspension_end_date'] = None

    with transaction.atomic():
        updated = users.compare_and_set(user_id, 'status', user['status'], patch)
        if updated is None:
            raise InvalidTransition('User status changed while this request was processed. Reload and try again.')
        UserStatusHistoryService().create(user_id, status, reason, actor.id)

    audit_log.create(
        actor.id,
        audit_action,
        user_id,
        {
            'from': user['status'],
            'to': status,
            'reason': reason,
            'duration_days': days,
            'suspension_end_date': updated['suspension_end_date'],
            'suspension_count': updated['suspension_count'],
        },
        target_type='user',
    )

    logger.info(
        f"User status updated. User ID: {user_id}, Old Status: {user['status']}, "
        f"New Status: {status}, Actor: {actor.email} (ID: {actor.id})"
    )

    notifications.send_status_email(
        updated['email'],
        updated['name'],
        status,
        reason=reason,
        suspension_end_date=updated['suspension_end_date'],
        suspension_count=updated['suspension_count'],
    )

    return updated


def bulk_update_user_status(user_ids, status, actor, reason=None, duration_days=None):
    """
    Apply ``update_user_status`` to several accounts, one at a time.

    Missing, protected or failing accounts are skipped and logged; the
    others are still updated.

    Returns:
        dict: ``updated`` rows, ``skipped`` entries ({id, error}) and counts
    """
    require_admin(actor)
    if status not in BULK_USER_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(BULK_USER_STATUSES)}.")
    if status == 'suspended':
        _suspension_days(duration_days)

    updated, skipped = [], []
    for user_id in dict.fromkeys(str(user_id) for user_id in user_ids):
        try:
            updated.append(update_user_status(
                user_id, status, actor,
                reason=reason,
                duration_days=duration_days,
                audit_action='BULK_UPDATE_USER_STATUS',
            ))
        except (APIException, gateway.GatewayError, DatabaseError) as exc:
            error = getattr(exc, 'detail', None) or str(exc)
            logger.warning(
                f"Skipped user in bulk status update. User ID: {user_id}, "
                f"Status: {status}, Error: {error}, Actor: {actor.email} (ID: {actor.id})"
            )
            skipped.append({'id': user_id, 'error': str(error)})

    logger.info(
        f"Bulk status update finished. Status: {status}, Updated: {len(updated)}, "
        f"Skipped: {len(skipped)}, Actor: {actor.email} (ID: {actor.id})"
    )
    return {
        'updated': updated,
        'skipped': skipped,
        'updated_count': len(updated),
        'skipped_count': len(skipped),
    }


def reactivate_expired_suspensions(now=None):
    """
    Reactivate every suspended account whose suspension has ended.

    Safe to run repeatedly: accounts already reactivated no longer match.

    Args:
        now: Reference time (defaults to the current time)

    Returns:
        list: The reactivated user rows
    """
    now = now or timezone.now()
    history = UserStatusHistoryService()

    with transaction.atomic():
        reactivated = gateway.update_all(
            'users',
            {'status': 'suspended', 'suspension_end_date__lt': now},
            {
                'status': 'active',
                'status_reason': SUSPENSION_COMPLETED_REASON,
                'status_updated_at': now,
                'status_updated_by': None,
                'suspension_end_date': None,
            },
        )
        for user in reactivated:
            history.create(user['id'], 'active', SUSPENSION_COMPLETED_REASON, None)

    if reactivated:
        logger.info(f"Reactivated {len(reactivated)} accounts with expired suspensions")
    return reactivated


def _audit_payment(actor, action, payment, metadata):
    metadata = dict(metadata)
    metadata['proof_status'] = payment['proof_status']
    metadata['proof_issues'] = payment['proof_issues']
    audit_log.create(actor.id, action, payment['id'], metadata, target_type='payment')


def update_payment_status(payment_id, status, actor, notes=None):
    """
    Review a payment's status.

    Setting the current status again is a successful no-op; it is audited
    only when ``AUDIT_PAYMENT_NOOPS`` is on. Moving to paid or refunded
    needs a note, and a refunded payment never changes again.

    Returns:
        tuple: (payment, changed)

    Raises:
        ValidationError: Unknown status or missing note
        NotFound: No such payment
        InvalidTransition: Payment already refunded, or changed concurrently
    """
    require_admin(actor)
    if status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status. Must be one of: {', '.join(PAYMENT_STATUSES)}.")

    payments = PaymentService()
    payment = payments.find_by_id(payment_id)
    if payment is None:
        raise NotFound('Payment not found')

    current = payment['payment_status']
    note = (notes or '').strip()

    if status == current:
        if get_setting('AUDIT_PAYMENT_NOOPS'):
            _audit_payment(actor, 'UPDATE_PAYMENT_STATUS', payment, {
                'from': current, 'to': status, 'notes': note, 'noop': True,
            })
        logger.info(f"Payment status unchanged. Payment ID: {payment_id}, Status: {status}")
        return payment, False

    if current == 'refunded':
        raise InvalidTransition('Payment is already refunded')

    if status in NOTE_REQUIRED_PAYMENT_STATUSES and not note:
        raise ValidationError('notes is required and cannot be empty')

    patch = {'payment_status': status}
    if note:
        patch['notes'] = note
    if status == 'refunded':
        patch['refund_reason'] = note

    if payments.compare_and_set(payment_id, 'payment_status', current, patch) is None:
        raise InvalidTransition('Payment status changed while this request was processed. Reload and try again.')

    updated = payments.find_by_id(payment_id)
    _audit_payment(actor, 'UPDATE_PAYMENT_STATUS', updated, {'from': current, 'to': status, 'notes': note})

    logger.info(
        f"Payment status updated. Payment ID: {payment_id}, Old Status: {current}, "
        f"New Status: {status}, Actor: {actor.email} (ID: {actor.id})"
    )
    return updated, True


def refund_payment(payment_id, actor, reason):
    """
    Refund a payment.

    Raises:
        NotFound: No such payment
        InvalidTransition: Payment already refunded
        ValidationError: Empty or whitespace-only reason
    """
    require_admin(actor)
    payments = PaymentService()
    payment = payments.find_by_id(payment_id)
    if payment is None:
        raise NotFound('Payment not found')

    current = payment['payment_status']
    if current == 'refunded':
        raise InvalidTransition('Payment is already refunded')

    reason = (reason or '').strip()
    if not reason:
        raise ValidationError('Refund reason is required')

    patch = {'payment_status': 'refunded', 'refund_reason': reason}
    if payments.compare_and_set(payment_id, 'payment_status', current, patch) is None:
        raise InvalidTransition('Payment status changed while this request was processed. Reload and try again.')

    updated = payments.find_by_id(payment_id)
    _audit_payment(actor, 'REFUND_PAYMENT', updated, {'from': current, 'to': 'refunded', 'reason': reason})

    logger.info(
        f"Payment refunded. Payment ID: {payment_id}, Previous Status: {current}, "
        f"Actor: {actor.email} (ID: {actor.id})"
    )
    return updated


def update_report_status(report_id, status, actor, admin_notes=None, resolution=None):
    """
    Review a user report. Any listed status may follow any other; the
    reviewer and review time are stamped together.

    Returns:
        dict: The updated report with reporter, reported user and reviewer
    """
    require_admin(actor)
    if status not in ReportService.STATUSES:
        raise ValidationError(f"Invalid report status. Must be one of: {', '.join(ReportService.STATUSES)}.")

    reports = ReportService()
    report = reports.find_by_id(report_id)
    if report is None:
        raise NotFound('Report not found')

    patch = {
        'status': status,
        'reviewed_by_id': actor.id,
        'reviewed_at': timezone.now(),
    }
    if admin_notes is not None:
        patch['admin_notes'] = admin_notes
    if resolution is not None:
        patch['resolution'] = resolution

    reports.update(report_id, patch)

    audit_log.create(
        actor.id,
        'UPDATE_REPORT_STATUS',
        report_id,
        {'from': report['status'], 'to': status, 'admin_notes': admin_notes, 'resolution': resolution},
        target_type='report',
    )

    logger.info(
        f"Report status updated. Report ID: {report_id}, Old Status: {report['status']}, "
        f"New Status: {status}, Actor: {actor.email} (ID: {actor.id})"
    )
    return reports.find_by_id(report_id, detailed=True)
