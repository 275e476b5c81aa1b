"""
Email Service Package
=====================

Transactional email for the academy backend.

Structure
---------
- sending.py            → send_email(): validation, retry with exponential
                          backoff, EmailSendResult
- enrollment_emails.py  → course / program enrollment confirmations,
                          EmailLog bookkeeping, delivery metrics, retries
- templates/            → Django templates (auto-escaped)
- views.py / urls.py    → admin endpoints (logs, retry, metrics, preview)

Delivery goes through django-anymail (Resend) when ``RESEND_API_KEY`` is
configured, otherwise through the configured Django email backend.

Author: DSP Development Team
Date: 2025-09-03
"""
