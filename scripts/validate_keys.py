"""Checks the configured RSA keys load and meet the minimum size."""

import sys

from gateway_server.admin.keys import key_report
from gateway_server.config import get_server_config


def main() -> int:
    report = key_report(get_server_config())
    for name, entry in report.items():
        if entry["valid"]:
            print(f"{name}: ok ({entry['bits']} bits, {entry['fingerprint']})")
        else:
            print(f"{name}: FAILED ({entry['error']})")
    return 0 if all(entry["valid"] for entry in report.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
