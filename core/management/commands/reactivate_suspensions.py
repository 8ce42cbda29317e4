# Reactivate Expired Suspensions Management Command
import logging
import time

from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from django.utils import timezone

from core.conf import get_setting
from core.gateway import GatewayError
from core.services import UserService
from core.transitions import reactivate_expired_suspensions

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Reactivates suspended accounts whose suspension period has ended.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the accounts that would be reactivated without changing them.',
        )
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Keep running, sweeping every --interval seconds.',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=None,
            help='Seconds between sweeps with --loop (defaults to SUSPENSION_SWEEP_INTERVAL_SECONDS).',
        )

    def handle(self, *args, **options):
        interval = options['interval'] or get_setting('SUSPENSION_SWEEP_INTERVAL_SECONDS')
        if interval <= 0:
            raise CommandError('--interval must be a positive number of seconds.')

        if not options['loop']:
            self.sweep(options['dry_run'])
            return

        self.stdout.write(f'Sweeping expired suspensions every {interval} seconds. Press Ctrl+C to stop.')
        try:
            while True:
                try:
                    self.sweep(options['dry_run'])
                except (GatewayError, DatabaseError) as exc:
                    # Keep looping; the next sweep picks the same accounts up.
                    logger.error(f"Suspension sweep failed: {exc}", exc_info=True)
                    self.stderr.write(self.style.ERROR(f'Sweep failed: {exc}'))
                time.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write('Stopped.')

    def sweep(self, dry_run):
        now = timezone.now()

        if dry_run:
            expired = UserService().find_expired_suspensions(now)
            for user in expired:
                self.stdout.write(f"  {user['email']} (suspended until {user['suspension_end_date']:%Y-%m-%d %H:%M})")
            self.stdout.write(self.style.SUCCESS(
                f'Dry run completed. {len(expired)} account(s) would be reactivated.'
            ))
            return expired

        reactivated = reactivate_expired_suspensions(now)
        self.stdout.write(self.style.SUCCESS(f'Reactivated {len(reactivated)} account(s).'))
        return reactivated
