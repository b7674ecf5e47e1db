"""Merchant backend for the Simpaisa wallet and disbursement gateway."""
