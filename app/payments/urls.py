"""
URL configuration for the payments app.

Routes:
    - POST /create-payment-intent/ - Start a rental payment
    - POST /create-account-link/ - Stripe Connect onboarding link
    - POST /withdraw/ - Withdraw balance to Stripe Connect
    - POST /webhook/ - Stripe webhook endpoint
    - POST /webhooks/stripe/ - Stripe webhook endpoint (legacy path)

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import CreateAccountLinkView, CreatePaymentIntentView, WithdrawView
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path(
        "create-payment-intent/",
        CreatePaymentIntentView.as_view(),
        name="create_payment_intent",
    ),
    path(
        "create-account-link/",
        CreateAccountLinkView.as_view(),
        name="create_account_link",
    ),
    path("withdraw/", WithdrawView.as_view(), name="withdraw"),
    # Webhook endpoints
    path("webhook/", stripe_webhook, name="stripe_webhook"),
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook_legacy"),
]
