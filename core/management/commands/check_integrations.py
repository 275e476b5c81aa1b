"""
Check Integrations Management Command

Prüft die Konfiguration der externen Dienste (Stripe, Webflow, E-Mail),
ohne Requests an die Dienste zu senden.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.exceptions import ConfigurationException
from core.stripe_integration.client import get_publishable_key, validate_secret_key
from core.webflow_sync.services import get_webflow_config

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Prüft die Konfiguration von Stripe, Webflow und dem E-Mail Versand."

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit with an error if any integration is not configured",
        )

    def handle(self, *args, **options):
        problems = []

        try:
            validate_secret_key()
            mode = "live" if settings.STRIPE_LIVE_MODE else "test"
            self.stdout.write(self.style.SUCCESS(f"Stripe: secret key configured ({mode} mode)"))
        except ConfigurationException as exc:
            problems.append(f"Stripe: {exc.message}")
        if not get_publishable_key():
            problems.append("Stripe: publishable key is not configured")
        if not settings.DJSTRIPE_WEBHOOK_SECRET:
            problems.append("Stripe: DJSTRIPE_WEBHOOK_SECRET is not configured")

        for program_type in ("course", "program"):
            if get_webflow_config(program_type) is None:
                problems.append(f"Webflow: {program_type} collection is not configured")
            else:
                self.stdout.write(self.style.SUCCESS(f"Webflow: {program_type} collection configured"))

        if "console" in settings.EMAIL_BACKEND or "locmem" in settings.EMAIL_BACKEND:
            problems.append(f"Email: non-delivering backend in use ({settings.EMAIL_BACKEND})")
        else:
            self.stdout.write(self.style.SUCCESS(f"Email: {settings.EMAIL_BACKEND}"))

        for problem in problems:
            logger.warning(problem)
            self.stdout.write(self.style.WARNING(problem))

        if problems and options["strict"]:
            raise CommandError(f"{len(problems)} integration problem(s) found")
        if not problems:
            self.stdout.write(self.style.SUCCESS("All integrations configured."))
