"""Client-type authentication backend for Django REST Framework.

The two first-party clients identify themselves with the
``X-Client-Type`` header:

* ``admin``       -> back-office (``ClientRole.ADMIN``)
* ``ios`` / ``app`` -> mobile storefront (``ClientRole.APP``)

Security decisions
------------------
* **Fail Closed** - a missing or unknown client type yields 401.
* The role is resolved once here; views read ``request.user.role`` and
  never parse the header themselves.
"""

from __future__ import annotations

import structlog
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission

from modules.orders.constants import ClientRole

logger = structlog.get_logger(__name__)

CLIENT_TYPE_HEADER = "HTTP_X_CLIENT_TYPE"

_ROLES_BY_CLIENT_TYPE = {
    "admin": ClientRole.ADMIN,
    "ios": ClientRole.APP,
    "app": ClientRole.APP,
}


class ClientPrincipal:
    """Lightweight user object for requests authenticated by client type.

    There is no local Django ``User`` row behind it; views use
    ``request.user.role`` to make authorisation decisions.
    """

    def __init__(self, client_type: str, role: ClientRole):
        self.client_type = client_type
        self.role = role

    # DRF checks
    is_authenticated = True
    is_active = True

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.client_type} ({self.role})"


class ClientTypeAuthentication(BaseAuthentication):
    """DRF authentication class that resolves the caller's ``ClientRole``."""

    keyword = "ClientType"

    def authenticate(self, request):
        """Return ``(ClientPrincipal, None)`` or ``None`` (no credentials)."""
        client_type = request.META.get(CLIENT_TYPE_HEADER, "").strip().lower()
        if not client_type:
            return None  # no credentials - permission check answers 401

        role = _ROLES_BY_CLIENT_TYPE.get(client_type)
        if role is None:
            logger.warning("client_type_rejected", client_type=client_type)
            raise AuthenticationFailed(f"Unknown client type '{client_type}'.")

        return (ClientPrincipal(client_type, role), None)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'


class _HasRole(BasePermission):
    role: ClientRole

    def has_permission(self, request, view) -> bool:
        return getattr(request.user, "role", None) == self.role


class IsAdminClient(_HasRole):
    message = "Admin access required."
    role = ClientRole.ADMIN


class IsAppClient(_HasRole):
    message = "iOS access required."
    role = ClientRole.APP
