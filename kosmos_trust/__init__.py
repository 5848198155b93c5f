"""
Kósmos trust protocol: DID registry, issuer whitelist and proof gate.

⚠️ The default placeholder verifier performs no cryptographic verification.
"""

__version__ = "0.1.0"

DISCLAIMER = """
⚠️  The placeholder proof verifier accepts any non-empty proof.
    Configure a real verifier backend before trusting verification results.
"""


def print_disclaimer() -> None:
    print(DISCLAIMER)
