#!/usr/bin/env python3
"""DH sample.

Generates a parameter set, checks it, writes it to ``parameters.pem``, reads
it back into a second parameter set and compares the shared secrets computed
on both sides.
"""

import sys
from pathlib import Path

# Add the parent directory to the path so we can import cryptoguard
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptoguard import CryptographicError, DHCheck, DHParameters, error_strings_initializer
from cryptoguard.logging_config import configure_logging
from cryptoguard.pkey import terminal_passphrase_callback

BITS = 1024
GENERATOR = 2
PARAMETERS_FILENAME = "parameters.pem"


def dh_sample() -> int:
    """Run the DH exchange sample."""
    print("DH sample")
    print("=" * 9)
    print(f"\nUsing DH keys of {BITS} bits.")

    print("Generating DH parameters. This can take some time...")
    dh = DHParameters.generate_parameters(BITS, GENERATOR)

    codes = dh.check()
    if codes:
        print("Generation failed.", file=sys.stderr)
        if codes & DHCheck.P_NOT_SAFE_PRIME:
            print("p is not a safe prime.", file=sys.stderr)
        if codes & DHCheck.NOT_SUITABLE_GENERATOR:
            print("g is not a suitable generator.", file=sys.stderr)
        if codes & DHCheck.UNABLE_TO_CHECK_GENERATOR:
            print("g is not a correct generator. Must be either 2 or 5.", file=sys.stderr)
        return 1

    with open(PARAMETERS_FILENAME, "wb") as parameters_file:
        dh.write_parameters(parameters_file)
    print(f"   ✓ DH parameters written to \"{PARAMETERS_FILENAME}\"")

    print("Generating DH key...")
    dh.generate_key()

    print(f"Reading back the DH parameters from \"{PARAMETERS_FILENAME}\"...")
    with open(PARAMETERS_FILENAME, "rb") as parameters_file:
        dh2 = DHParameters.from_parameters(parameters_file, terminal_passphrase_callback())

    print("Generating second DH key...")
    dh2.generate_key()

    key_a = dh.compute_key(dh2.public_key)
    key_b = dh2.compute_key(dh.public_key)
    print(f"Comparing key A and key B: {'IDENTICAL' if key_a == key_b else 'DIFFERENT'}")

    dh.close()
    dh2.close()
    return 0


def main() -> int:
    configure_logging()
    with error_strings_initializer():
        try:
            return dh_sample()
        except (CryptographicError, OSError) as e:
            print(f"Exception: {e}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
