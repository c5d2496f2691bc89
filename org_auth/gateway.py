"""
Identity gateway

Entry point for callers outside the library. Every method returns a Result;
OrgAuthError subclasses raised by the services are converted to ErrorInfo
here and go no further.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .domain import Member, Organization, Page, TokenPair, UserProfile
from .exceptions import OrgAuthError
from .results import ErrorInfo, Result
from .services import AccessControlEngine, SessionManager
from .stores import DjangoCredentialStore, DjangoOrganizationStore, token_cache_from_settings


logger = logging.getLogger(__name__)


class IdentityGateway:
    """Wraps SessionManager and AccessControlEngine behind result values"""

    def __init__(self, sessions: SessionManager, access_control: AccessControlEngine):
        self.sessions = sessions
        self.access_control = access_control

    @classmethod
    def from_settings(cls) -> 'IdentityGateway':
        credential_store = DjangoCredentialStore()
        return cls(
            sessions=SessionManager.from_settings(
                credential_store=credential_store,
                token_cache=token_cache_from_settings(),
            ),
            access_control=AccessControlEngine.from_settings(
                credential_store=credential_store,
                organization_store=DjangoOrganizationStore(),
            ),
        )

    # Sessions

    def signup(self, name: str, email: str, password: str) -> Result[str]:
        return self._run(self.sessions.register, name, email, password)

    def signin(self, email: str, password: str) -> Result[TokenPair]:
        return self._run(self.sessions.authenticate, email, password)

    def refresh_token(self, refresh_token: str) -> Result[TokenPair]:
        return self._run(self.sessions.rotate, refresh_token)

    def revoke_refresh_token(self, access_token: str, refresh_token: str) -> Result[None]:
        """Revoke one of the caller's own refresh tokens"""
        return self._as_user(
            access_token,
            lambda user_id: self.sessions.revoke(refresh_token, owner_id=user_id),
        )

    def current_user(self, access_token: str) -> Result[str]:
        return self._run(self.sessions.current_user, access_token)

    def profile(self, access_token: str) -> Result[UserProfile]:
        return self._as_user(access_token, self.sessions.profile)

    # Organizations

    def create_organization(
        self,
        access_token: str,
        name: str,
        description: Optional[str] = None,
    ) -> Result[str]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.create_organization(user_id, name, description),
        )

    def list_organizations(
        self,
        access_token: str,
        page: int = 1,
        limit: Optional[int] = None,
        search_term: Optional[str] = None,
    ) -> Result[Page[Organization]]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.list_organizations(user_id, page, limit, search_term),
        )

    def get_organization(self, access_token: str, org_id: str) -> Result[Organization]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.get_organization(org_id, user_id),
        )

    def update_organization(
        self,
        access_token: str,
        org_id: str,
        patch: Dict[str, Any],
    ) -> Result[Organization]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.update_organization(org_id, user_id, patch),
        )

    def delete_organization(self, access_token: str, org_id: str) -> Result[None]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.delete_organization(org_id, user_id),
        )

    # Members

    def invite_member(self, access_token: str, org_id: str, target_email: str) -> Result[Organization]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.invite_member(org_id, user_id, target_email),
        )

    def list_members(
        self,
        access_token: str,
        org_id: str,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Result[Page[Member]]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.list_members(org_id, user_id, page, limit),
        )

    def remove_member(self, access_token: str, org_id: str, target_email: str) -> Result[Organization]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.remove_member(org_id, user_id, target_email),
        )

    def change_role(
        self,
        access_token: str,
        org_id: str,
        target_email: str,
        new_role: str,
    ) -> Result[Member]:
        return self._as_user(
            access_token,
            lambda user_id: self.access_control.change_role(org_id, user_id, target_email, new_role),
        )

    def _as_user(self, access_token: str, operation: Callable[[str], Any]) -> Result:
        def authenticated():
            return operation(self.sessions.current_user(access_token))
        return self._run(authenticated)

    def _run(self, operation: Callable, *args) -> Result:
        try:
            return Result.success(operation(*args))
        except OrgAuthError as e:
            logger.debug(f"Request failed: {e.error_code}: {e.message}")
            return Result.failure(ErrorInfo.from_exception(e))
