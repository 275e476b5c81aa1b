"""
Stripe Integration Views (core.stripe_integration)
==================================================

Public REST endpoints used by the checkout pages.

Endpoints
---------

1. GetStripeConfigView
   - URL: /api/payments/stripe/config/
   - Method: GET
   - Auth: None
   - Purpose:
       Returns the publishable key so the frontend can initialize Stripe.js.

2. StripeProductView
   - URL: /api/payments/stripe/products/<product_id>/
   - Method: GET
   - Auth: None
   - Purpose:
       Product name and active price (cached) for the checkout summary.

3. CreateCheckoutSessionView
   - URL: /api/payments/stripe/checkout-session/
   - Method: POST
   - Body: {"email": "...", "full_name": "...", "class_id": "EMR-003"}
   - Purpose:
       Creates a Stripe Checkout Session for a class registration. The
       metadata carries class_id, full_name and email so the webhook can
       record the enrollment.

Security
--------
- Card data is handled exclusively by Stripe; the backend only stores
  identifiers and amounts.
- Webhooks are verified by dj-stripe (see signals.py).

Author: DSP Development Team
Date: 2025-08-21
"""

import logging

import stripe
from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from academy.models import Class
from core.email_service.sending import validate_email
from core.exceptions import AcademyException, NotFoundException, ValidationException, map_database_error
from .client import (
    configure_stripe,
    get_or_create_customer,
    get_product_with_price,
    get_publishable_key,
    validate_secret_key,
)

logger = logging.getLogger(__name__)


def _error_response(exc: AcademyException) -> Response:
    return Response({"detail": exc.message, **exc.details}, status=exc.status_code)


class GetStripeConfigView(APIView):
    """
    endpoint so the frontend can initialize Stripe.js
    """

    permission_classes = [AllowAny]

    def get(self, request):
        return Response({"publishableKey": get_publishable_key()}, status=200)


class StripeProductView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, product_id):
        try:
            product = get_product_with_price(product_id)
        except AcademyException as e:
            return _error_response(e)
        return Response(product, status=200)


class CreateCheckoutSessionView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            email = validate_email(request.data.get("email"), "email")
            full_name = (request.data.get("full_name") or "").strip()
            if not full_name:
                raise ValidationException("full_name is required", field="full_name")
            class_id = (request.data.get("class_id") or "").strip()
            if not class_id:
                raise ValidationException("class_id is required", field="class_id")
            validate_secret_key()

            klass = Class.objects.select_related("course").filter(class_id=class_id).first()
            if klass is None:
                raise NotFoundException(map_database_error("class"), resource="class")
            product_id = klass.stripe_product_id or klass.course.stripe_product_id
            if not product_id:
                raise ValidationException(
                    "This class is not available for online registration", field="class_id"
                )

            product = get_product_with_price(product_id)
            customer_id = get_or_create_customer(email, full_name)
        except AcademyException as e:
            return _error_response(e)

        base_url = settings.CHECKOUT_BASE_URL or settings.FRONTEND_URL
        params = dict(
            mode="payment",
            customer=customer_id,
            line_items=[{"price": product["price_id"], "quantity": 1}],
            success_url=f"{base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}&class_id={class_id}",
            cancel_url=f"{base_url}/checkout?class_id={class_id}",
            metadata={"class_id": class_id, "full_name": full_name, "email": email},
            payment_intent_data={
                "metadata": {"class_id": class_id, "email": email},
                "receipt_email": email,
            },
        )

        configure_stripe()
        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.error.StripeError as e:
            logger.error(f"Checkout session for {class_id} failed: {e}")
            return Response(
                {
                    "detail": "Stripe Checkout could not be created.",
                    "stripe_error": getattr(e, "user_message", None) or str(e),
                },
                status=status.HTTP_502_BAD_GATEWAY,
            )

        logger.info(f"Checkout session {session['id']} created for {class_id}")
        return Response({"checkout_url": session["url"], "id": session["id"]}, status=200)
