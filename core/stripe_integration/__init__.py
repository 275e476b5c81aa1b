"""
Stripe Integration Package
==========================

All Stripe related logic of the academy backend.

Current Scope
-------------
- Uses `dj-stripe` to verify webhook signatures and persist Events.
- Provides API endpoints (see views.py) for:
  * Returning the publishable key
  * Looking up a product with its active price
  * Creating Checkout Sessions for class registrations
- Provides webhook handlers (see signals.py) that record enrollments,
  payments and refunds through `academy.billing.services.checkout`.

Structure
---------
- apps.py         → App configuration (`StripeIntegrationConfig`)
- client.py       → SDK configuration and small Stripe helpers
- views.py        → API endpoints
- signals.py      → Webhook handlers (Event post-processing)
- urls.py         → Routes for Stripe endpoints

Author: DSP Development Team
Date: 2025-09-03
"""
