"""
Stripe Integration AppConfig
============================

Registers `core.stripe_integration` with Django and imports the signal
handlers at startup, so the `post_save` receiver on
`djstripe.models.Event` is connected exactly once per process.

Operational notes
-----------------
- `ready()` only imports the module that wires up signal receivers; no
  DB or network calls here.
- To pause webhook processing (e.g. during a data migration), comment out
  the signals import below.

Author: DSP Development Team
Date: 2025-09-03
"""

from django.apps import AppConfig


class StripeIntegrationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.stripe_integration"
    verbose_name = "Stripe Integration"

    def ready(self):
        # Import signals so Django registers the post_save handler for dj-stripe Event
        from . import signals  # noqa: F401
