"""
Append-only audit trail of admin actions.

Writing an entry is best-effort: any failure is logged and swallowed so the
action being recorded is never rolled back or blocked by its audit entry.
"""

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

from . import gateway
from .gateway import Embed, Search
from .services import EntityService

logger = logging.getLogger(__name__)


def _json_safe(metadata):
    """Round-trip through JSON so UUIDs, datetimes and Decimals store cleanly."""
    return json.loads(json.dumps(metadata or {}, cls=DjangoJSONEncoder))


class AuditLogService(EntityService):
    table = 'audit_logs'
    order_by = ('-created_at', '-id')
    search_columns = ('action', 'target_id')

    # admin_id is a plain id column, so the admin summary is merged in a
    # second query.
    list_embeds = (
        Embed('admin', 'users', local_key='admin_id', columns=('id', 'name', 'email', 'role')),
    )

    def create(self, admin_id, action, target_id, metadata=None, target_type=''):
        """
        Append an audit entry.

        Args:
            admin_id: Id of the acting admin
            action: Convention-named action, e.g. ``UPDATE_USER_STATUS``
            target_id: Id of the affected entity
            metadata: Action specific details (from/to values, reason ...)
            target_type: Optional entity kind (user, job, booking ...)

        Returns:
            dict: The stored entry, or None if it could not be written
        """
        try:
            missing = [
                name for name, value in (('admin_id', admin_id), ('action', action), ('target_id', target_id))
                if value in (None, '')
            ]
            if missing:
                raise ValueError(f"Missing required audit fields: {', '.join(missing)}")

            with transaction.atomic():
                entry = gateway.insert(self.table, {
                    'admin_id': admin_id,
                    'action': action,
                    'target_id': str(target_id),
                    'target_type': target_type or '',
                    'metadata': _json_safe(metadata),
                })
        except Exception as exc:
            logger.error(
                f"Failed to write audit log. Action: {action}, Target: {target_id}, "
                f"Admin: {admin_id}, Error: {exc}",
                exc_info=True,
            )
            return None

        logger.debug(f"Audit log written. Action: {action}, Target: {target_id}, Admin: {admin_id}")
        return entry

    def get_logs(self, filters=None, page=None, limit=None):
        """
        Page through audit entries, newest first.

        Args:
            filters: Optional ``action``, ``target_id``, ``admin_id``,
                ``target_type`` and ``search``
        """
        filters = filters or {}
        where = self._filters(filters, ('action', 'target_id', 'admin_id', 'target_type'))
        if 'target_id' in where:
            where['target_id'] = str(where['target_id'])
        return self._paginate(where, page, limit, search=Search(filters.get('search'), self.search_columns))
