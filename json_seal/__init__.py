"""
json-seal - Canonical JSON signing envelopes.

This package canonicalizes JSON values following RFC 8785 and signs the
canonical bytes with RSA-PSS, producing self-describing envelopes that any
holder can verify without the original serialization.
"""

from importlib.metadata import PackageNotFoundError, version

# Set up version
__version__ = "0.1.0"

try:
    __version__ = version("json-seal")
except PackageNotFoundError:
    pass

# Core components
from json_seal.core.canonicalization import (
    canonicalize,
    canonical_json_dumps,
    parse_json,
    verify_canonical_equivalence,
)
from json_seal.core.crypto import (
    KeyPair,
    generate_keypair,
    load_private_key,
    load_public_key,
)
from json_seal.core.envelope import sign_payload, sign_payload_async
from json_seal.core.errors import (
    CanonicalizationError,
    CryptoFailure,
    DuplicateKey,
    InvalidPayload,
    InvalidSurrogate,
    JsonSealError,
    MalformedEnvelope,
    NonFiniteNumber,
    UnsupportedKind,
)
from json_seal.core.models import (
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
    SignatureBlock,
    SignedEnvelope,
    VerificationResult,
)
from json_seal.core.validation import is_json_value, validate
from json_seal.core.verification import verify_envelope, verify_envelope_async

__all__ = [
    # Canonicalization
    "canonicalize",
    "canonical_json_dumps",
    "parse_json",
    "verify_canonical_equivalence",
    "validate",
    "is_json_value",
    # Signing
    "KeyPair",
    "generate_keypair",
    "load_private_key",
    "load_public_key",
    "sign_payload",
    "sign_payload_async",
    "verify_envelope",
    "verify_envelope_async",
    # Models
    "JsonArray",
    "JsonBool",
    "JsonNull",
    "JsonNumber",
    "JsonObject",
    "JsonString",
    "JsonValue",
    "SignatureBlock",
    "SignedEnvelope",
    "VerificationResult",
    # Errors
    "JsonSealError",
    "InvalidPayload",
    "CanonicalizationError",
    "NonFiniteNumber",
    "InvalidSurrogate",
    "DuplicateKey",
    "UnsupportedKind",
    "MalformedEnvelope",
    "CryptoFailure",
]
