"""Gateway-signed inbound messages."""
