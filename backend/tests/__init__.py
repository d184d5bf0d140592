"""
Pytest test suite for the Storefront API backend.

Test categories:
- Unit tests: pure rules and parsing (order status, sort, filter parsing, config)
- Integration tests: services and the filter compiler against a temp-file SQLite
- API tests: the FastAPI app through httpx, including auth guards and error envelopes
"""
