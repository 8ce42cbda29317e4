"""
Bearer token authentication and the acting-admin context.
"""

import logging
from collections import namedtuple

from rest_framework_simplejwt.authentication import JWTAuthentication

from .exceptions import Unauthorized

logger = logging.getLogger(__name__)


class Actor(namedtuple('Actor', ['id', 'role', 'status', 'email'])):
    """
    The authenticated account performing a request.

    Built once per request from the local user row and passed explicitly
    into every moderation operation.
    """

    __slots__ = ()

    ADMIN_ROLES = ('admin', 'superadmin')

    @classmethod
    def from_user(cls, user):
        return cls(id=user.pk, role=user.role, status=user.status, email=user.email)

    @property
    def is_admin(self):
        return self.role in self.ADMIN_ROLES

    @property
    def is_superadmin(self):
        return self.role == 'superadmin'


class ActorJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that resolves the token to the local user row.

    Tokens for accounts that were soft deleted are rejected even though the
    token itself is still valid.
    """

    def get_user(self, validated_token):
        """
        Resolve the token's user id to a marketplace account.

        Raises:
            Unauthorized: If the account no longer exists or was deleted
        """
        user = super().get_user(validated_token)

        if user.deleted_at is not None:
            logger.warning(f"Rejected token for deleted account. User ID: {user.pk}")
            raise Unauthorized('This account has been deleted.')

        return user
