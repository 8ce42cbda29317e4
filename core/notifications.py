"""
Account status emails.

Sending is fire-and-forget: failures are logged and never reach the caller.
"""

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

TEMPLATES = {
    'suspended': ('account_suspended', 'Your iYaya account has been suspended'),
    'banned': ('account_banned', 'Your iYaya account has been banned'),
    'active': ('account_reactivated', 'Your iYaya account has been reactivated'),
}


def send_status_email(email, name, status, reason=None, suspension_end_date=None, suspension_count=0):
    """
    Tell a user their account status changed.

    Statuses without a template (``inactive``) are skipped.

    Args:
        email: Recipient address
        name: Recipient display name
        status: New account status
        reason: Admin supplied reason
        suspension_end_date: When the suspension ends, for suspensions
        suspension_count: Total suspensions so far, used for the repeat
            offense notice

    Returns:
        bool: True if the email was handed to the mail backend
    """
    if status not in TEMPLATES:
        logger.debug(f"No status email template for '{status}', skipping notification to {email}")
        return False

    if not email:
        logger.warning(f"Cannot send '{status}' status email: user has no email address")
        return False

    template, subject = TEMPLATES[status]
    context = {
        'name': name,
        'reason': reason,
        'suspension_end_date': suspension_end_date,
        'suspension_count': suspension_count,
        'repeat_offense': (suspension_count or 0) > 1,
    }

    try:
        message = EmailMultiAlternatives(
            subject=subject,
            body=render_to_string(f'emails/{template}.txt', context),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[email],
        )
        message.attach_alternative(render_to_string(f'emails/{template}.html', context), 'text/html')
        message.send()
    except Exception as exc:
        logger.error(f"Failed to send '{status}' status email to {email}: {exc}", exc_info=True)
        return False

    logger.info(f"Sent '{status}' status email to {email}")
    return True
