"""
Payments app for rental payments, owner balances and payouts.

This app handles:
- PaymentIntent creation for rentals
- Settlement of successful payments into owner balances (webhooks)
- Withdrawals from owner balances to Stripe Connect accounts
- Stripe Connect onboarding links

Usage:
    from payments.services import WithdrawalService

    result = WithdrawalService.withdraw("9.50", "owner_1", "acct_123")
"""
