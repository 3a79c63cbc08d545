"""
Payment API views.

Endpoints (mounted under /api/v1/payments/):
    POST create-payment-intent/  Start a rental payment
    POST create-account-link/    Stripe Connect onboarding link
    POST withdraw/               Pay an owner's balance out

Every error body is BaseApplicationError.to_dict():
    {"error": "...", "error_code": "...", "details": {...}}
"""

from __future__ import annotations

import logging
from typing import Any

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError
from core.exceptions import ValidationError as CoreValidationError

from payments.exceptions import PaymentNotFoundError, PaymentProcessingError
from payments.serializers import (
    AccountLinkUrlSerializer,
    ClientSecretSerializer,
    CreateAccountLinkSerializer,
    CreatePaymentIntentSerializer,
    ErrorSerializer,
    WithdrawResultSerializer,
    WithdrawSerializer,
)
from payments.services import (
    AccountLinkService,
    PaymentIntentService,
    WithdrawalService,
)

logger = logging.getLogger(__name__)


def _invalid_request(errors: dict[str, Any]) -> Response:
    error = CoreValidationError("Invalid request", details=errors)
    return Response(error.to_dict(), status=status.HTTP_400_BAD_REQUEST)


def _error_response(error: BaseApplicationError) -> Response:
    """Map a domain error to its HTTP status."""
    if isinstance(error, (PaymentNotFoundError, NotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (PaymentProcessingError, ConflictError)):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        # Validation errors, InsufficientBalance and other client errors
        status_code = status.HTTP_400_BAD_REQUEST
    return Response(error.to_dict(), status=status_code)


def _server_error() -> Response:
    return Response(
        {"error": "Server error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class CreatePaymentIntentView(APIView):
    """
    Create a Stripe PaymentIntent for a rental.

    POST /api/v1/payments/create-payment-intent/

    Request:
        {"amount": 20.00, "userId": "renter_1", "rentalId": "rental_1"}

    Response:
        200 OK: {"clientSecret": "pi_..._secret_..."}
        400 Bad Request: Missing or invalid fields
        500 Internal Server Error: Stripe did not create the intent
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_payment_intent",
        summary="Create payment intent",
        description=(
            "Create a Stripe PaymentIntent tagged with the rental and renter. "
            "The rental is marked paid only when Stripe confirms the payment "
            "through the webhook."
        ),
        request=CreatePaymentIntentSerializer,
        responses={
            200: OpenApiResponse(
                response=ClientSecretSerializer,
                description="PaymentIntent created",
            ),
            400: OpenApiResponse(
                response=ErrorSerializer,
                description="Validation error",
            ),
            500: OpenApiResponse(
                response=ErrorSerializer,
                description="Payment initiation failed",
            ),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_request(serializer.errors)

        data = serializer.validated_data
        try:
            result = PaymentIntentService.create_intent(
                amount=data["amount"],
                user_id=data["userId"],
                rental_id=data["rentalId"],
            )
        except BaseApplicationError as e:
            return _error_response(e)
        except Exception:
            logger.error(
                "Unexpected error creating payment intent",
                extra={"rental_id": data["rentalId"]},
                exc_info=True,
            )
            return _server_error()

        return Response(
            ClientSecretSerializer({"clientSecret": result.client_secret}).data,
            status=status.HTTP_200_OK,
        )


class CreateAccountLinkView(APIView):
    """
    Return a Stripe Connect onboarding link for a user.

    POST /api/v1/payments/create-account-link/

    Creates the user's Express account on first use; later calls reuse it.

    Response:
        200 OK: {"url": "https://connect.stripe.com/setup/..."}
        400 Bad Request: Missing userId
        404 Not Found: Unknown user
        500 Internal Server Error: Stripe failed
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_account_link",
        summary="Create Connect onboarding link",
        request=CreateAccountLinkSerializer,
        responses={
            200: OpenApiResponse(
                response=AccountLinkUrlSerializer,
                description="Onboarding link created",
            ),
            400: OpenApiResponse(response=ErrorSerializer, description="Validation error"),
            404: OpenApiResponse(response=ErrorSerializer, description="User not found"),
            500: OpenApiResponse(response=ErrorSerializer, description="Stripe error"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CreateAccountLinkSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_request(serializer.errors)

        user_id = serializer.validated_data["userId"]
        try:
            result = AccountLinkService.create_account_link(user_id)
        except BaseApplicationError as e:
            return _error_response(e)
        except Exception:
            logger.error(
                "Unexpected error creating account link",
                extra={"user_id": user_id},
                exc_info=True,
            )
            return _server_error()

        return Response(
            AccountLinkUrlSerializer({"url": result.url}).data,
            status=status.HTTP_200_OK,
        )


class WithdrawView(APIView):
    """
    Withdraw an owner's balance to their Stripe Connect account.

    POST /api/v1/payments/withdraw/

    The platform fee is debited on top of amount. If the transfer fails
    the debited total is restored before the error is returned.

    Response:
        200 OK: {"success": true, "transferId": "tr_...", "newBalance": 0.0}
        400 Bad Request: Validation error, destination mismatch or
            insufficient balance
        404 Not Found: Unknown user
        500 Internal Server Error: Payout failed
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="withdraw",
        summary="Withdraw balance",
        request=WithdrawSerializer,
        responses={
            200: OpenApiResponse(
                response=WithdrawResultSerializer,
                description="Transfer created",
            ),
            400: OpenApiResponse(
                response=ErrorSerializer,
                description="Validation error or insufficient balance",
            ),
            404: OpenApiResponse(response=ErrorSerializer, description="User not found"),
            500: OpenApiResponse(response=ErrorSerializer, description="Payout failed"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = WithdrawSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_request(serializer.errors)

        data = serializer.validated_data
        try:
            result = WithdrawalService.withdraw(
                amount=data["amount"],
                user_id=data["userId"],
                destination_account_id=data["destinationAccountId"],
            )
        except BaseApplicationError as e:
            return _error_response(e)
        except Exception:
            logger.error(
                "Unexpected error during withdrawal",
                extra={"user_id": data["userId"]},
                exc_info=True,
            )
            return _server_error()

        return Response(
            WithdrawResultSerializer(
                {
                    "success": True,
                    "transferId": result.transfer_id,
                    "newBalance": result.new_balance,
                }
            ).data,
            status=status.HTTP_200_OK,
        )
