"""
Stripe Client Helpers (core.stripe_integration)
===============================================

Thin helpers around the official ``stripe`` SDK shared by the checkout
views, the webhook handlers and the payout reconciliation.

Features
--------
- One place that configures the SDK: secret key, fixed socket timeout and
  a small retry count for network errors
- Prefix validation for Stripe identifiers (``prod_``, ``sk_``, ``cus_`` ...)
- Product + active price lookup, cached through Django's cache framework
  (Redis in production, locmem in development)
- Customer lookup by email, created on demand

Errors
------
Stripe SDK errors are translated into ``core.exceptions`` so the views can
return a consistent error payload.

Author: DSP Development Team
Date: 2025-09-03
"""

import logging
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from django.core.cache import cache

from core.exceptions import (
    ConfigurationException,
    ExternalServiceException,
    NotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)

PRODUCT_CACHE_PREFIX = "stripe:product:"


def configure_stripe() -> None:
    """Apply API key, timeout and retry settings to the stripe module."""
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.max_network_retries = getattr(settings, "STRIPE_MAX_NETWORK_RETRIES", 3)
    stripe.default_http_client = stripe.RequestsClient(
        timeout=getattr(settings, "STRIPE_TIMEOUT_SECONDS", 30)
    )
    if getattr(settings, "DJSTRIPE_STRIPE_API_VERSION", None):
        stripe.api_version = settings.DJSTRIPE_STRIPE_API_VERSION


def validate_stripe_id(value: Optional[str], prefix: str, field: str = "id") -> str:
    """
    Check that ``value`` is a Stripe identifier with the given prefix.

    >>> validate_stripe_id("prod_123", "prod_")
    'prod_123'
    """
    if not value or not isinstance(value, str):
        raise ValidationException(f"{field} is required", field=field)
    value = value.strip()
    if not value.startswith(prefix) or len(value) <= len(prefix):
        raise ValidationException(
            f"Invalid {field}: expected an id starting with '{prefix}'", field=field
        )
    return value


def validate_secret_key() -> str:
    """The configured secret key, checked for the ``sk_`` prefix."""
    key = settings.STRIPE_SECRET_KEY
    if not key:
        raise ConfigurationException("Stripe secret key is not configured")
    if not key.startswith("sk_"):
        raise ConfigurationException("Stripe secret key must start with 'sk_'")
    return key


def get_publishable_key() -> str:
    return (
        settings.STRIPE_LIVE_PUBLISHABLE_KEY
        if settings.STRIPE_LIVE_MODE
        else settings.STRIPE_TEST_PUBLISHABLE_KEY
    )


def _to_external_error(exc: stripe.error.StripeError) -> ExternalServiceException:
    message = getattr(exc, "user_message", None) or str(exc) or "Stripe request failed"
    return ExternalServiceException(message, service="stripe")


def get_product_with_price(product_id: str, use_cache: bool = True) -> Dict[str, Any]:
    """
    Fetch a product and its active one-off price.

    Returns:
        dict with ``product_id``, ``name``, ``description``, ``price_id``,
        ``unit_amount`` (cents) and ``currency``
    """
    product_id = validate_stripe_id(product_id, "prod_", field="product_id")
    cache_key = f"{PRODUCT_CACHE_PREFIX}{product_id}"

    if use_cache:
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

    configure_stripe()
    try:
        product = stripe.Product.retrieve(product_id)
        prices = stripe.Price.list(product=product_id, active=True, limit=10)
    except stripe.error.InvalidRequestError as exc:
        logger.warning("Stripe product %s not found: %s", product_id, exc)
        raise NotFoundException("Product not found", resource="product") from exc
    except stripe.error.StripeError as exc:
        logger.error("Stripe product lookup failed for %s: %s", product_id, exc)
        raise _to_external_error(exc) from exc

    price = None
    default_price = product.get("default_price")
    for candidate in prices.get("data", []):
        if default_price and candidate.get("id") == default_price:
            price = candidate
            break
        if price is None:
            price = candidate
    if price is None:
        raise NotFoundException("No active price for this product", resource="price")

    result = {
        "product_id": product.get("id"),
        "name": product.get("name"),
        "description": product.get("description"),
        "price_id": price.get("id"),
        "unit_amount": price.get("unit_amount"),
        "currency": price.get("currency") or settings.DEFAULT_CURRENCY,
    }
    cache.set(cache_key, result, getattr(settings, "STRIPE_PRICE_CACHE_SECONDS", 300))
    return result


def get_or_create_customer(email: str, name: Optional[str] = None) -> str:
    """Return the id of the Stripe customer for ``email``, creating one if needed."""
    configure_stripe()
    try:
        existing = stripe.Customer.list(email=email, limit=1)
        data = existing.get("data", [])
        if data:
            return data[0]["id"]
        customer = stripe.Customer.create(email=email, name=name or None)
    except stripe.error.StripeError as exc:
        logger.error("Stripe customer lookup failed for %s: %s", email, exc)
        raise _to_external_error(exc) from exc

    logger.info("Created Stripe customer %s for %s", customer["id"], email)
    return customer["id"]


def get_receipt_url(payment_intent_id: Optional[str]) -> Optional[str]:
    """Receipt URL of the latest charge of a payment intent, if Stripe has one."""
    if not payment_intent_id or not payment_intent_id.startswith("pi_"):
        return None
    configure_stripe()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id, expand=["latest_charge"])
    except stripe.error.StripeError as exc:
        logger.warning("Receipt lookup for %s failed: %s", payment_intent_id, exc)
        return None
    charge = intent.get("latest_charge")
    if isinstance(charge, dict):
        return charge.get("receipt_url")
    return None
