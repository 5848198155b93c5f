"""
Protocol configuration for the Kósmos trust protocol.

Constants shared by the registry, the issuer whitelist and the proof gate.
"""

# ============================================================================
# STORAGE LAYOUT
# ============================================================================

# Entity kinds (first component of every StorageKey)
KIND_DID = "did"
KIND_WHITELIST = "whitelist"
KIND_GATE = "gate"

# Field tags per entity kind
DID_FIELDS = ("controller", "document", "status")
WHITELIST_FIELDS = ("admin", "issuers")
GATE_FIELDS = ("authority_ref", "admin")

STORAGE_LAYOUT = {
    KIND_DID: DID_FIELDS,
    KIND_WHITELIST: WHITELIST_FIELDS,
    KIND_GATE: GATE_FIELDS,
}

# Default singleton instance names
DEFAULT_WHITELIST_INSTANCE = "issuer-whitelist"
DEFAULT_GATE_INSTANCE = "proof-gate"

# ============================================================================
# EVENT TAGS
# ============================================================================

EVENT_DID_REGISTERED = "did_reg"
EVENT_DID_UPDATED = "did_upd"
EVENT_DID_REVOKED = "did_rev"
EVENT_DOCUMENT_UPDATED = "doc_upd"

EVENT_WHITELIST_INITIALIZED = "wl_init"
EVENT_ISSUER_ADDED = "iss_add"
EVENT_ISSUER_REMOVED = "iss_rem"
EVENT_ADMIN_CHANGED = "new_admin"

EVENT_GATE_INITIALIZED = "gate_init"
EVENT_GATE_REFERENCE_CHANGED = "gate_ref"
EVENT_PROOF_VERIFIED = "zkp_verify"

EVENT_TAGS = frozenset(
    {
        EVENT_DID_REGISTERED,
        EVENT_DID_UPDATED,
        EVENT_DID_REVOKED,
        EVENT_WHITELIST_INITIALIZED,
        EVENT_ISSUER_ADDED,
        EVENT_ISSUER_REMOVED,
        EVENT_ADMIN_CHANGED,
        EVENT_GATE_INITIALIZED,
        EVENT_GATE_REFERENCE_CHANGED,
        EVENT_PROOF_VERIFIED,
    }
)

# ============================================================================
# AUTHORITY PROOFS
# ============================================================================

# Prefix for every signed invocation (domain separation)
DOMAIN_SEPARATOR_PREFIX = b"KOSMOS_TRUST_V1_"
INVOCATION_DOMAIN_SEPARATOR = DOMAIN_SEPARATOR_PREFIX + b"INVOKE"
VERIFIER_DOMAIN_SEPARATOR = DOMAIN_SEPARATOR_PREFIX + b"HMAC_PROOF"

# Ed25519 verify keys are 32 bytes, hex-encoded as identities
IDENTITY_KEY_BYTES = 32
SIGNATURE_BYTES = 64

# ============================================================================
# VERIFIER BACKENDS
# ============================================================================

VERIFIER_BACKEND_ENV_VAR = "KOSMOS_VERIFIER_BACKEND"
DEFAULT_VERIFIER_BACKEND = "placeholder"

# ============================================================================
# LIMITS
# ============================================================================

MAX_DID_LENGTH = 256
MAX_IDENTITY_LENGTH = 256
MAX_DOCUMENT_ENTRIES = 64
MAX_LABEL_LENGTH = 32  # "short labels" for document keys
MAX_PROOF_BYTES = 4096
MAX_PUBLIC_INPUTS = 64

# ============================================================================
# PERSISTENCE
# ============================================================================

SNAPSHOT_VERSION = 1

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert len(set(STORAGE_LAYOUT)) == 3, "Storage kinds must be distinct"
    for fields in STORAGE_LAYOUT.values():
        assert len(set(fields)) == len(fields), "Duplicate field tag"
    assert len(EVENT_TAGS) == 10, "Event tags must be distinct"
    assert MAX_LABEL_LENGTH > 0, "Label length must be positive"
    assert MAX_PROOF_BYTES >= 256, "Proof limit below placeholder proof size"
    assert SNAPSHOT_VERSION >= 1, "Invalid snapshot version"

    return True


# Auto-validate on import
validate_config()
