#!/usr/bin/env python3
"""PKEY sample.

Generates a DSA key, writes it as encrypted PKCS#8 to ``private_key.pem``
and its public half to ``certificate_public_key.pem``, then reads the private
key back. The passphrase is asked on the terminal.
"""

import sys
from pathlib import Path

# Add the parent directory to the path so we can import cryptoguard
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptoguard import CipherAlgorithm, CryptographicError, DSAKey, PKey, error_strings_initializer, get_config
from cryptoguard.logging_config import configure_logging
from cryptoguard.pkey import terminal_passphrase_callback

PRIVATE_KEY_FILENAME = "private_key.pem"
CERTIFICATE_PUBLIC_KEY_FILENAME = "certificate_public_key.pem"


def pkey_sample() -> int:
    """Run the PKEY sample."""
    print("PKEY sample")
    print("=" * 11)
    print()

    callback = terminal_passphrase_callback()
    algorithm = CipherAlgorithm.from_name(get_config().default_pem_cipher)

    print("Generating DSA key. This can take some time...")
    dsa_key = DSAKey.generate_private_key(1024)
    print("Done.")

    with PKey() as pkey:
        pkey.set_dsa_key(dsa_key)
        print(f"Checking that the type is correct: {'OK' if pkey.is_dsa() else 'FAILURE'}")

        with open(PRIVATE_KEY_FILENAME, "wb") as private_key_file:
            pkey.write_private_key_pkcs8(private_key_file, algorithm, callback)
        print(f"   ✓ Private key written to \"{PRIVATE_KEY_FILENAME}\"")

        with open(CERTIFICATE_PUBLIC_KEY_FILENAME, "wb") as public_key_file:
            pkey.write_certificate_public_key(public_key_file)
        print(f"   ✓ Certificate public key written to \"{CERTIFICATE_PUBLIC_KEY_FILENAME}\"")

    print(f"Trying to read back the private key from \"{PRIVATE_KEY_FILENAME}\"...")
    with open(PRIVATE_KEY_FILENAME, "rb") as private_key_file:
        with PKey.from_private_key(private_key_file, callback) as restored:
            print(f"Done. Read back a {restored.type.name} key.")
    return 0


def main() -> int:
    configure_logging()
    with error_strings_initializer():
        try:
            return pkey_sample()
        except (CryptographicError, OSError) as e:
            print(f"Exception: {e}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
