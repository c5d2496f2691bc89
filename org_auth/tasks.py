"""
Celery tasks

Schedule ``reconcile_memberships`` with celery beat to repair links left
behind by partial failures, e.g. every 15 minutes.
"""

import logging

from celery import shared_task

from .services import MembershipReconciler


logger = logging.getLogger(__name__)


@shared_task(name='org_auth.tasks.reconcile_memberships', ignore_result=False)
def reconcile_memberships(org_id=None):
    """Reconcile one organization, or all of them when ``org_id`` is None"""
    reconciler = MembershipReconciler.from_settings()
    if org_id is not None:
        return reconciler.reconcile_organization(org_id)
    return reconciler.reconcile_all()
