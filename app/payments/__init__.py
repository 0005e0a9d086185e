"""
Payments app for marketplace settlement.

This app handles:
- Payouts to sellers for delivered orders (approval-gated)
- Refunds to buyers
- Settlement execution against Stripe, bank transfer or a mock provider
- Carrier webhook ingestion

Related apps:
    - orders: Order lifecycle that triggers payout creation
    - audit: Trail that proves approval and records every settlement step
    - notifications: Outbox for emails and admin alerts

Usage:
    from payments.services import PayoutService

    PayoutService.approve(payout_id, actor=admin)
    result = PayoutService.run_payout(payout_id, actor=admin)
"""
