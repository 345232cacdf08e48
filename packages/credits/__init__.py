"""
Credits package - metered credit ledger for paid automation actions.

This package integrates with:
- Stripe: automatic off-session top-ups and manual top-up checkout

Every metered feature (outbound messages, AI content, voice-agent minutes)
spends credits through CreditConsumptionService.
"""
