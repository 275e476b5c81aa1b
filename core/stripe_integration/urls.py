from django.urls import path

from .views import CreateCheckoutSessionView, GetStripeConfigView, StripeProductView

app_name = "stripe_integration"

urlpatterns = [
    path("stripe/config/", GetStripeConfigView.as_view(), name="stripe-config"),
    path("stripe/products/<str:product_id>/", StripeProductView.as_view(), name="stripe-product"),
    path("stripe/checkout-session/", CreateCheckoutSessionView.as_view(), name="stripe-checkout-session"),
]
