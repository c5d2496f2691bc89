"""
Repair user <-> organization links
"""

from django.core.management.base import BaseCommand

from ...services import MembershipReconciler


class Command(BaseCommand):
    help = 'Reconcile user organization lists with organization member lists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--org-id',
            dest='org_id',
            help='Reconcile a single organization instead of all of them'
        )

    def handle(self, *args, **options):
        reconciler = MembershipReconciler.from_settings()

        if options['org_id']:
            counts = reconciler.reconcile_organization(options['org_id'])
            self.stdout.write(self.style.SUCCESS(
                f"Organization {options['org_id']}: linked={counts['linked']} unlinked={counts['unlinked']}"
            ))
            return

        totals = reconciler.reconcile_all()
        style = self.style.SUCCESS if not totals['failed'] else self.style.WARNING
        self.stdout.write(style(
            f"Reconciled {totals['organizations']} organizations: "
            f"linked={totals['linked']} unlinked={totals['unlinked']} failed={totals['failed']}"
        ))
