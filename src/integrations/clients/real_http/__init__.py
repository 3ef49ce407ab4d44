"""
Real HTTP integration clients.

These clients communicate with real external systems via HTTP:
- the Campay mobile money collection API
- the resume builder backend, for remote callers that poll payment status

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in src/api/endpoints/payments.py only.
"""
