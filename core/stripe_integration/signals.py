"""
Stripe Webhook Signal Handlers (version-agnostic)
=================================================

This module processes verified Stripe events that dj-stripe has already
validated and stored. We react to persisted `djstripe.models.Event` rows
using Django's `post_save` signal, which is stable across dj-stripe
versions.

Handled event types (idempotent):
- `checkout.session.completed`  → record student, enrollment, payment,
  transactions and staged invoices; send the confirmation email
- `payment_intent.succeeded`    → mark tuition transactions paid
- `charge.refunded`             → mark the payment and its transactions refunded

Safety:
- Never re-raise from the signal handler (prevents webhook retry storms).
- Payments are de-duplicated on the payment intent id.
- All writes occur inside `transaction.atomic()` blocks in the services.

Author: DSP Development Team
Date: 2025-09-03
"""

import logging
from typing import Any, Dict

from django.db.models.signals import post_save
from django.dispatch import receiver
from djstripe.models import Event

from academy.billing.services.checkout import (
    checkout_details_from_session,
    mark_transactions_paid,
    record_checkout,
    refund_payment,
)
from .client import get_receipt_url

logger = logging.getLogger(__name__)


# ---------- helpers ----------


def _extract_data_object(event: Event) -> Dict[str, Any]:
    """
    Extract the Stripe event's `data.object` payload from a dj-stripe Event.

    dj-stripe stores the raw Stripe JSON in `event.data`. Depending on the
    dj-stripe version this is either the full event body or only its
    `data` member.

    Returns:
        A dict representing the `data.object` (or `{}` if not found).
    """
    data = event.data or {}
    if not isinstance(data, dict):
        return {}
    # Standard Stripe event shape: {"data": {"object": {...}}}
    inner = data.get("data")
    if isinstance(inner, dict) and isinstance(inner.get("object"), dict):
        return inner["object"]
    if isinstance(data.get("object"), dict):
        return data["object"]
    return {}


# ---------- signal entrypoint ----------


@receiver(post_save, sender=Event)
def on_djstripe_event_created(sender, instance: Event, created: bool, **kwargs):
    """
    Post-save hook for dj-stripe Event.

    Runs once for each *new* event saved by dj-stripe (after signature
    verification and de-dup). Dispatches to small handlers per event type.
    """
    if not created:
        return

    event_type = instance.type
    obj = _extract_data_object(instance)

    logger.info("[webhook] %s (event_id=%s)", event_type, instance.id)

    try:
        if event_type == "checkout.session.completed":
            _handle_checkout_session_completed(obj)

        elif event_type == "payment_intent.succeeded":
            _handle_payment_intent_succeeded(obj)

        elif event_type == "charge.refunded":
            _handle_charge_refunded(obj)

        else:
            logger.debug("Unhandled event type: %s", event_type)

    except Exception as exc:
        # Never re-raise: Stripe would retry the delivery. We just log.
        logger.exception("Error handling event %s: %s", event_type, exc)


# ---------- concrete handlers ----------


def _handle_checkout_session_completed(session: Dict[str, Any]) -> None:
    if session.get("payment_status") not in (None, "paid", "no_payment_required"):
        logger.info(
            "checkout.session.completed session=%s not paid yet (%s), skipping",
            session.get("id"),
            session.get("payment_status"),
        )
        return

    details = checkout_details_from_session(session)
    details.receipt_url = get_receipt_url(details.payment_intent_id)

    logger.info(
        "checkout.session.completed session=%s class=%s pi=%s",
        session.get("id"),
        details.class_id,
        details.payment_intent_id,
    )

    result = record_checkout(details)
    if not result.success:
        logger.error("Checkout %s not recorded: %s", session.get("id"), result.error)


def _handle_payment_intent_succeeded(payment_intent: Dict[str, Any]) -> None:
    """
    Tuition payments carry the transaction id in the intent metadata.
    Intents created by Checkout are recorded through the session event.
    """
    pi_id = payment_intent.get("id")
    metadata = payment_intent.get("metadata") or {}
    transaction_id = metadata.get("transaction_id")

    logger.info("payment_intent.succeeded pi=%s transaction=%s", pi_id, transaction_id)

    if not transaction_id:
        return
    try:
        transaction_id = int(transaction_id)
    except (TypeError, ValueError):
        logger.warning("payment_intent %s has invalid transaction_id %r", pi_id, transaction_id)
        return

    mark_transactions_paid(pi_id, transaction_id=transaction_id)


def _handle_charge_refunded(charge: Dict[str, Any]) -> None:
    payment_intent = charge.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")

    logger.info("charge.refunded charge=%s pi=%s", charge.get("id"), payment_intent)

    if not charge.get("refunded"):
        # Partial refund: amounts stay on the ledger
        logger.info("Partial refund on charge %s, ledger unchanged", charge.get("id"))
        return
    refund_payment(payment_intent)
