"""
Collaborator interfaces consumed by the core services

Every implementation translates its backend failures into DependencyError.
Idempotent reads are wrapped with ``retry_read``; writes are never retried.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import wraps
from typing import Any, Dict, Iterator, List, Optional

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..conf import auth_settings
from ..domain import MembershipPatch, Organization, OrgFilter, UserFilter, UserRecord
from ..exceptions import DependencyError


logger = logging.getLogger(__name__)


def retry_read(func):
    """Retry an idempotent read a bounded number of times on DependencyError"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        retrying = Retrying(
            stop=stop_after_attempt(int(auth_settings.READ_RETRY_ATTEMPTS)),
            wait=wait_exponential(multiplier=float(auth_settings.READ_RETRY_WAIT), max=2),
            retry=retry_if_exception_type(DependencyError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(func, *args, **kwargs)

    return wrapper


@contextmanager
def dependency_errors(operation: str, *exc_types):
    """Re-raise backend exceptions of ``exc_types`` as DependencyError"""
    try:
        yield
    except exc_types as e:
        logger.error(f"{operation} failed: {e.__class__.__name__}")
        raise DependencyError(f"{operation} is temporarily unavailable") from e


class CredentialStore(ABC):
    """Persists users and their organization memberships"""

    @abstractmethod
    def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def find_users(self, user_filter: UserFilter) -> List[UserRecord]:
        ...

    @abstractmethod
    def create_user(self, record: UserRecord) -> str:
        """Insert a user; raises ConflictError on a duplicate email"""

    @abstractmethod
    def update_user(self, user_id: str, patch: MembershipPatch) -> bool:
        """Apply ``patch``; returns False when the user does not exist"""

    @abstractmethod
    def update_many_users(self, user_filter: UserFilter, patch: MembershipPatch) -> int:
        """Apply ``patch`` to every matching user; returns the match count"""


class OrganizationStore(ABC):
    """Persists organizations with their embedded member lists"""

    UPDATABLE_FIELDS = ('name', 'description', 'members')

    @abstractmethod
    def find_org_by_id(self, org_id: str) -> Optional[Organization]:
        ...

    @abstractmethod
    def find_orgs(self, org_filter: OrgFilter, skip: int, limit: int) -> List[Organization]:
        ...

    @abstractmethod
    def count_orgs(self, org_filter: OrgFilter) -> int:
        ...

    @abstractmethod
    def iter_org_ids(self) -> Iterator[str]:
        ...

    @abstractmethod
    def create_org(self, record: Organization) -> str:
        ...

    @abstractmethod
    def update_org(
        self,
        org_id: str,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Organization:
        """
        Apply ``patch`` (keys from UPDATABLE_FIELDS) and bump the version

        Raises NotFoundError when the organization is gone and
        StaleWriteError when ``expected_version`` no longer matches.
        """

    @abstractmethod
    def delete_org(self, org_id: str) -> bool:
        ...


class TokenCache(ABC):
    """Key-value store with per-key expiry"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; True only for the caller that actually removed it"""

    def ping(self) -> bool:
        return True
