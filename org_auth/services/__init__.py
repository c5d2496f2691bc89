"""
Org Auth core services
"""

from .session_manager import SessionManager
from .access_control import AccessControlEngine
from .reconciliation import MembershipReconciler

__all__ = [
    'SessionManager',
    'AccessControlEngine',
    'MembershipReconciler',
]
