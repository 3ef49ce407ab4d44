"""
Contracts (data models).

This folder defines the request/response shapes for external integrations:
- Payment provider token, collection and status formats
- The payment error taxonomy
- Status rules shared by the ledger and the poller

Why this exists:
- Ensures consistent data structures across mock and real clients
- Flows rely on stable models, not on ad-hoc dicts

Both mock and real HTTP clients should use these contracts.
"""
