"""Authorization capability and an in-memory role registry.

The bank depends only on ``Authorizer.has_role``; how roles are stored or
granted is the registry's business.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from duovault.certificate import verify_role_certificate
from duovault.constants import ADMIN_ROLE
from duovault.errors import Unauthorized

logger = logging.getLogger(__name__)


@runtime_checkable
class Authorizer(Protocol):
    def has_role(self, role: str, identity: str) -> bool: ...


class RoleRegistry:
    """Role → members mapping. ``ADMIN_ROLE`` members may grant and revoke."""

    def __init__(self, admin: str | None = None) -> None:
        self._members: dict[str, set[str]] = {}
        if admin is not None:
            self._members[ADMIN_ROLE] = {admin}

    def has_role(self, role: str, identity: str) -> bool:
        return identity in self._members.get(role, ())

    def members(self, role: str) -> frozenset[str]:
        return frozenset(self._members.get(role, ()))

    def _require_admin(self, caller: str) -> None:
        if not self.has_role(ADMIN_ROLE, caller):
            raise Unauthorized(caller, ADMIN_ROLE)

    def grant_role(self, caller: str, role: str, identity: str) -> None:
        self._require_admin(caller)
        self._members.setdefault(role, set()).add(identity)
        logger.info("%s granted %s to %s.", caller, role, identity)

    def revoke_role(self, caller: str, role: str, identity: str) -> None:
        self._require_admin(caller)
        self._members.get(role, set()).discard(identity)
        logger.info("%s revoked %s from %s.", caller, role, identity)

    def grant_from_certificate(self, token: str, authority_public_key: str) -> list[str]:
        """Record the roles named by a signed role-grant certificate.

        Returns the granted roles. Raises ``CertificateError`` on a bad
        certificate; nothing is recorded in that case.
        """
        claims = verify_role_certificate(token, authority_public_key)
        identity = claims["identity"]
        for role in claims["roles"]:
            self._members.setdefault(role, set()).add(identity)
        logger.info(
            "Certificate %s granted %s to %s.",
            claims["jti"], ", ".join(claims["roles"]), identity,
        )
        return claims["roles"]
