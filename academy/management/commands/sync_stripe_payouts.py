"""
Sync Stripe Payouts Management Command

Lädt die letzten Stripe Payouts und ordnet sie den Transaktionen über die
Payment Intent ID zu. Gedacht für einen regelmäßigen Cron-Job.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from academy.billing.services.reconciliation import sync_payouts

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Lädt Stripe Payouts und setzt payout_id / payout_date auf passenden Transaktionen."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=20,
            help="Number of most recent paid payouts to check (default: 20)",
        )

    def handle(self, *args, **options):
        limit = options["limit"]
        if limit < 1 or limit > 100:
            raise CommandError("--limit must be between 1 and 100")

        self.stdout.write(f"Prüfe die letzten {limit} Stripe Payouts...")
        result = sync_payouts(limit=limit)
        if not result.success:
            logger.error(f"sync_stripe_payouts failed: {result.error}")
            raise CommandError(f"Payout sync failed: {result.error}")

        self.stdout.write(
            self.style.SUCCESS(
                f"{result.data['payouts']} Payout(s) geprüft, "
                f"{result.data['updated']} Transaktion(en) aktualisiert."
            )
        )
