"""Outbound gateway client and request signing."""
