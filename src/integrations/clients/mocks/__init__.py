"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- Payment provider credentials are not configured
- We want to exercise the pay -> poll -> unlock flow end-to-end without moving money

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to src/integrations/contracts/*

Switching to real:
Set CAMPAY_APP_USER / CAMPAY_APP_PASSWORD (or INTEGRATIONS_MODE=real) and
src/api/endpoints/payments.py wires clients/real_http/* instead.
"""
