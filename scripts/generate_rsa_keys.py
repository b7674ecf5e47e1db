"""Generate the merchant RSA keypair used to sign gateway requests."""

import argparse
import os
import sys
from pathlib import Path

from gateway_server.transport.keys import MIN_KEY_SIZE, generate_key_files


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output-dir", default="storage/keys", type=Path)
    parser.add_argument("--bits", default=MIN_KEY_SIZE, type=int)
    parser.add_argument("--force", action="store_true", help="overwrite existing key files")
    parser.add_argument(
        "--passphrase-env",
        default="SIMPAISA_RSA_PRIVATE_KEY_PASSPHRASE",
        help="environment variable holding an optional private key passphrase",
    )
    args = parser.parse_args(argv)

    private_path = args.output_dir / "merchant_private_key.pem"
    public_path = args.output_dir / "merchant_public_key.pem"
    passphrase = os.getenv(args.passphrase_env)
    try:
        generate_key_files(
            private_path,
            public_path,
            bits=args.bits,
            password=passphrase.encode("utf-8") if passphrase else None,
            overwrite=args.force,
        )
    except FileExistsError as exc:
        print(f"{exc} already exists; pass --force to replace it", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(f"private key: {private_path}")
    print(f"public key:  {public_path} (share this with the gateway)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
