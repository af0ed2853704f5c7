"""
M-Pesa callback ingestion.

This package provides:
- parser: parse_stk_callback() turning a provider body into a CallbackOutcome
- handlers: ingest_callback() recording and resolving one delivery
- views: mpesa_callback HTTP endpoint (always acknowledges)
"""
