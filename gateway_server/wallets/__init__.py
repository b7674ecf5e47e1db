"""Mobile-wallet transactions."""
