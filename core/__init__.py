"""
Core Package - Academy Backend

Shared building blocks used by every domain app of the academy backend.

Struktur:
- exceptions.py: Error taxonomy shared by services and views
- results.py: ``OperationResult`` returned by service helpers
- audit_logs/: Best-effort activity log for admin actions
- authentication/: Cookie based JWT login for the back office
- stripe_integration/: Stripe checkout, webhooks and payouts
- webflow_sync/: Mirrors classes into the Webflow CMS
- email_service/: Transactional emails with retry and delivery log

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""
