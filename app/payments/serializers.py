"""
DRF serializers for the payments API.

Field names are camelCase to match the JSON contract the mobile and web
clients already use.

Provides:
- CreatePaymentIntentSerializer / ClientSecretSerializer
- CreateAccountLinkSerializer / AccountLinkUrlSerializer
- WithdrawSerializer / WithdrawResultSerializer
- ErrorSerializer: Shape of every error body (BaseApplicationError.to_dict)
"""

from __future__ import annotations

from rest_framework import serializers


class CreatePaymentIntentSerializer(serializers.Serializer):
    """
    Request body for POST create-payment-intent/.

    The amount is in major units; it is rounded to the nearest minor
    unit when the intent is created.
    """

    amount = serializers.DecimalField(
        max_digits=None,
        decimal_places=None,
        help_text="Amount in major currency units (e.g. 20.00)",
    )
    userId = serializers.CharField(
        max_length=128,
        help_text="Renter paying for the rental",
    )
    rentalId = serializers.CharField(
        max_length=128,
        help_text="Rental being paid for",
    )


class ClientSecretSerializer(serializers.Serializer):
    """Response body for POST create-payment-intent/."""

    clientSecret = serializers.CharField(
        help_text="PaymentIntent client secret for client-side confirmation",
    )


class CreateAccountLinkSerializer(serializers.Serializer):
    """Request body for POST create-account-link/."""

    userId = serializers.CharField(
        max_length=128,
        help_text="User to onboard to Stripe Connect",
    )


class AccountLinkUrlSerializer(serializers.Serializer):
    """Response body for POST create-account-link/."""

    url = serializers.URLField(help_text="Hosted Stripe onboarding URL")


class WithdrawSerializer(serializers.Serializer):
    """
    Request body for POST withdraw/.

    The platform fee is charged on top of amount.
    """

    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount to transfer in major currency units",
    )
    userId = serializers.CharField(
        max_length=128,
        help_text="User whose balance is withdrawn",
    )
    destinationAccountId = serializers.CharField(
        max_length=255,
        help_text="Stripe Connect account on file for the user (acct_xxx)",
    )


class WithdrawResultSerializer(serializers.Serializer):
    """Response body for POST withdraw/."""

    success = serializers.BooleanField()
    transferId = serializers.CharField(help_text="Stripe Transfer ID (tr_xxx)")
    newBalance = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        coerce_to_string=False,
        help_text="Balance after the withdrawal and fee",
    )


class ErrorSerializer(serializers.Serializer):
    """Error body returned by every payments endpoint."""

    error = serializers.CharField()
    error_code = serializers.CharField(required=False)
    details = serializers.DictField(required=False)
