"""Disbursement customers and payouts."""
