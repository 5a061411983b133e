"""
Core functionality for json-seal.

This package contains the JSON value model, the validator, the RFC 8785
canonicalizer and the signing and verification of envelopes.
"""

from .canonicalization import canonicalize, canonical_json_dumps, parse_json
from .envelope import sign_payload, sign_payload_async
from .models import SignedEnvelope, VerificationResult
from .validation import validate
from .verification import verify_envelope, verify_envelope_async

__all__ = [
    'canonicalize',
    'canonical_json_dumps',
    'parse_json',
    'sign_payload',
    'sign_payload_async',
    'SignedEnvelope',
    'VerificationResult',
    'validate',
    'verify_envelope',
    'verify_envelope_async',
]
