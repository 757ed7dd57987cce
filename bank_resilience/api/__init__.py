"""HTTP API for the banking resilience layer."""
