"""
Sync Webflow Classes Management Command

Überträgt Klassen erneut in das Webflow CMS, z.B. nach einer Änderung der
Collection oder wenn einzelne Syncs fehlgeschlagen sind.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q

from academy.models import Class
from core.webflow_sync.services import sync_class

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Synchronisiert Klassen mit dem Webflow CMS."

    def add_arguments(self, parser):
        parser.add_argument(
            "class_ids",
            nargs="*",
            help="Public class ids (e.g. EMR-001); all classes when omitted",
        )
        parser.add_argument(
            "--missing-only",
            action="store_true",
            help="Only classes without a Webflow item id",
        )

    def handle(self, *args, **options):
        classes = Class.objects.select_related("course").order_by("course_code", "class_id")
        if options["class_ids"]:
            classes = classes.filter(class_id__in=options["class_ids"])
        if options["missing_only"]:
            classes = classes.filter(Q(webflow_item_id__isnull=True) | Q(webflow_item_id=""))

        classes = list(classes)
        if not classes:
            self.stdout.write(self.style.WARNING("Keine Klassen gefunden."))
            return

        failed = 0
        for klass in classes:
            result = sync_class(klass)
            if result.success:
                self.stdout.write(f"  - {klass.class_id}: {result.data['action']}")
            else:
                failed += 1
                logger.error(f"Webflow sync of {klass.class_id} failed: {result.error}")
                self.stdout.write(self.style.ERROR(f"  - {klass.class_id}: {result.error}"))

        synced = len(classes) - failed
        self.stdout.write(self.style.SUCCESS(f"{synced} von {len(classes)} Klassen synchronisiert."))
        if failed:
            raise CommandError(f"{failed} class(es) could not be synced")
