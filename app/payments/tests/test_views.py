"""
Tests for the payments API views.

Exercises the three client endpoints through DRF's APIClient with the
Stripe adapter replaced by a mock.
"""

from decimal import Decimal
import pytest
from rest_framework.test import APIClient

from payments.adapters import ConnectedAccountResult
from payments.exceptions import StripeCardDeclinedError, StripeInvalidRequestError
from payments.models import UserAccount, Withdrawal
from payments.state_machines import WithdrawalState
from payments.tests.factories import UserAccountFactory

BASE_URL = "/api/v1/payments"


@pytest.fixture
def api_client():
    return APIClient()


# =============================================================================
# create-payment-intent/
# =============================================================================


class TestCreatePaymentIntentView:
    url = f"{BASE_URL}/create-payment-intent/"

    def test_returns_client_secret(self, db, api_client, mock_stripe_adapter):
        response = api_client.post(
            self.url,
            {"amount": 20.00, "userId": "renter_1", "rentalId": "rental_1"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json() == {"clientSecret": "pi_test_123_secret_abc"}

        params = mock_stripe_adapter.create_payment_intent.call_args.args[0]
        assert params.amount_cents == 2000
        assert params.metadata == {"userId": "renter_1", "rentalId": "rental_1"}

    def test_amount_as_string(self, db, api_client, mock_stripe_adapter):
        response = api_client.post(
            self.url,
            {"amount": "12.34", "userId": "renter_1", "rentalId": "rental_1"},
            format="json",
        )

        assert response.status_code == 200
        params = mock_stripe_adapter.create_payment_intent.call_args.args[0]
        assert params.amount_cents == 1234

    @pytest.mark.parametrize(
        "body",
        [
            {"userId": "renter_1", "rentalId": "rental_1"},
            {"amount": "abc", "userId": "renter_1", "rentalId": "rental_1"},
            {"amount": 20, "rentalId": "rental_1"},
            {"amount": 20, "userId": "renter_1"},
            {"amount": 20, "userId": "", "rentalId": "rental_1"},
        ],
    )
    def test_invalid_request(self, db, api_client, mock_stripe_adapter, body):
        response = api_client.post(self.url, body, format="json")

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        mock_stripe_adapter.create_payment_intent.assert_not_called()

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, db, api_client, mock_stripe_adapter, amount):
        response = api_client.post(
            self.url,
            {"amount": amount, "userId": "renter_1", "rentalId": "rental_1"},
            format="json",
        )

        assert response.status_code == 400
        mock_stripe_adapter.create_payment_intent.assert_not_called()

    def test_stripe_failure_returns_500(self, db, api_client, mock_stripe_adapter):
        mock_stripe_adapter.create_payment_intent.side_effect = StripeCardDeclinedError(
            "Your card was declined."
        )

        response = api_client.post(
            self.url,
            {"amount": 20, "userId": "renter_1", "rentalId": "rental_1"},
            format="json",
        )

        assert response.status_code == 500
        assert response.json()["error_code"] == "PAYMENT_INITIATION_FAILED"

    def test_unexpected_error_returns_500(self, db, api_client, mock_stripe_adapter):
        mock_stripe_adapter.create_payment_intent.side_effect = RuntimeError("boom")

        response = api_client.post(
            self.url,
            {"amount": 20, "userId": "renter_1", "rentalId": "rental_1"},
            format="json",
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}

    def test_get_not_allowed(self, api_client):
        assert api_client.get(self.url).status_code == 405


# =============================================================================
# create-account-link/
# =============================================================================


class TestCreateAccountLinkView:
    url = f"{BASE_URL}/create-account-link/"

    def test_returns_onboarding_url(self, db, api_client, mock_stripe_adapter):
        UserAccountFactory(id="user_1")

        response = api_client.post(self.url, {"userId": "user_1"}, format="json")

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://connect.stripe.com/setup/e/acct_new_123/abc"
        }
        assert UserAccount.objects.get(pk="user_1").payout_account_id == "acct_new_123"

    def test_missing_user_id(self, db, api_client, mock_stripe_adapter):
        response = api_client.post(self.url, {}, format="json")

        assert response.status_code == 400
        assert "userId" in response.json()["details"]

    def test_unknown_user_returns_404(self, db, api_client, mock_stripe_adapter):
        response = api_client.post(self.url, {"userId": "nobody"}, format="json")

        assert response.status_code == 404
        mock_stripe_adapter.create_connected_account.assert_not_called()

    def test_user_deleted_during_binding_returns_404(
        self, db, api_client, mock_stripe_adapter
    ):
        UserAccountFactory(id="user_1")

        def delete_user(**kwargs):
            UserAccount.objects.filter(pk="user_1").delete()
            return ConnectedAccountResult(id="acct_orphan")

        mock_stripe_adapter.create_connected_account.side_effect = delete_user

        response = api_client.post(self.url, {"userId": "user_1"}, format="json")

        assert response.status_code == 404

    def test_stripe_failure_returns_500(self, db, api_client, mock_stripe_adapter):
        UserAccountFactory(id="user_1")
        mock_stripe_adapter.create_account_link.side_effect = StripeInvalidRequestError(
            "No such account"
        )

        response = api_client.post(self.url, {"userId": "user_1"}, format="json")

        assert response.status_code == 500
        assert response.json()["error_code"] == "ACCOUNT_LINK_FAILED"


# =============================================================================
# withdraw/
# =============================================================================


class TestWithdrawView:
    url = f"{BASE_URL}/withdraw/"

    def body(self, user, amount="9.50", destination=None):
        return {
            "amount": amount,
            "userId": user.id,
            "destinationAccountId": destination or user.payout_account_id,
        }

    def test_withdraws_full_balance(self, api_client, funded_owner, mock_stripe_adapter):
        response = api_client.post(self.url, self.body(funded_owner), format="json")

        assert response.status_code == 200
        assert response.data["success"] is True
        assert response.data["transferId"] == "tr_test_123"
        assert response.data["newBalance"] == Decimal("0.00")

        funded_owner.refresh_from_db()
        assert funded_owner.account_balance == Decimal("0.00")
        assert Withdrawal.objects.get().state == WithdrawalState.COMPLETED

    def test_insufficient_balance(self, api_client, funded_owner, mock_stripe_adapter):
        response = api_client.post(
            self.url, self.body(funded_owner, amount="9.51"), format="json"
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_BALANCE"
        funded_owner.refresh_from_db()
        assert funded_owner.account_balance == Decimal("10.00")
        mock_stripe_adapter.create_transfer.assert_not_called()

    def test_destination_mismatch(self, api_client, funded_owner, mock_stripe_adapter):
        response = api_client.post(
            self.url,
            self.body(funded_owner, destination="acct_someone_else"),
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "DESTINATION_MISMATCH"

    @pytest.mark.parametrize("amount", ["abc", "1.005", ""])
    def test_invalid_amount(self, api_client, funded_owner, mock_stripe_adapter, amount):
        response = api_client.post(
            self.url, self.body(funded_owner, amount=amount), format="json"
        )

        assert response.status_code == 400

    def test_unknown_user_returns_404(self, db, api_client, mock_stripe_adapter):
        response = api_client.post(
            self.url,
            {"amount": "1.00", "userId": "nobody", "destinationAccountId": "acct_1"},
            format="json",
        )

        assert response.status_code == 404

    def test_transfer_failure_restores_balance(
        self, api_client, funded_owner, mock_stripe_adapter
    ):
        mock_stripe_adapter.create_transfer.side_effect = StripeInvalidRequestError(
            "Insufficient platform funds"
        )

        response = api_client.post(self.url, self.body(funded_owner), format="json")

        assert response.status_code == 500
        assert response.json()["error_code"] == "PAYOUT_FAILED"
        funded_owner.refresh_from_db()
        assert funded_owner.account_balance == Decimal("10.00")
        assert Withdrawal.objects.get().state == WithdrawalState.COMPENSATED

    def test_unexpected_error_returns_500(self, api_client, funded_owner, mocker):
        mocker.patch(
            "payments.views.WithdrawalService.withdraw",
            side_effect=RuntimeError("boom"),
        )

        response = api_client.post(self.url, self.body(funded_owner), format="json")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}
