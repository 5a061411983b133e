"""
Envelope verification.

The canonical form of the payload is always recomputed from the payload
itself; nothing transmitted alongside it is trusted. Faults caused by the
envelope's contents resolve to a negative result rather than an exception,
since envelopes usually arrive from untrusted sources.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Dict, Union

from json_seal.core.canonicalization import canonicalize, parse_json
from json_seal.core.crypto import (
    SIGNATURE_ALGORITHM,
    decode_signature,
    load_public_key,
    verify_bytes,
)
from json_seal.core.errors import (
    CanonicalizationError,
    CryptoFailure,
    InvalidPayload,
    MalformedEnvelope,
)
from json_seal.core.models import (
    ENVELOPE_VERSION,
    JsonObject,
    SignedEnvelope,
    VerificationResult,
)
from json_seal.core.validation import validate

logger = logging.getLogger(__name__)

REQUIRED_SIGNATURE_FIELDS = ("algorithm", "publicKey", "value")

EnvelopeInput = Union[SignedEnvelope, Mapping, str, bytes, bytearray]


def _unique_members(node: JsonObject, where: str) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for key, value in node.members:
        if key in fields:
            raise MalformedEnvelope(f"{where} repeats the member {key!r}")
        fields[key] = value
    return fields


def _fields_from_text(text: Union[str, bytes, bytearray]) -> Dict[str, Any]:
    try:
        node = parse_json(text)
    except InvalidPayload as e:
        raise MalformedEnvelope(f"Envelope is not valid JSON: {e}") from e
    if not isinstance(node, JsonObject):
        raise MalformedEnvelope("Envelope must be a JSON object")

    fields = _unique_members(node, "Envelope")
    # The payload stays a node so repeated names inside it are caught
    # by the canonicalizer.
    for name, value in fields.items():
        if name == "payload":
            continue
        if name == "signature" and isinstance(value, JsonObject):
            fields[name] = {k: v.to_python() for k, v in _unique_members(value, "Signature").items()}
        else:
            fields[name] = value.to_python()
    return fields


def _envelope_fields(envelope: EnvelopeInput) -> Mapping:
    if isinstance(envelope, SignedEnvelope):
        return envelope.to_dict()
    if isinstance(envelope, (str, bytes, bytearray)):
        return _fields_from_text(envelope)
    if isinstance(envelope, Mapping):
        return envelope
    raise MalformedEnvelope(f"Envelope must be an object, got {type(envelope).__name__}")


def _reject(reason: str) -> VerificationResult:
    logger.info(f"Envelope rejected: {reason}")
    return VerificationResult(valid=False, reason=reason)


def verify_envelope(envelope: EnvelopeInput) -> VerificationResult:
    """Verify the signature of an envelope.

    Args:
        envelope: a SignedEnvelope, its decoded JSON mapping, or raw JSON
            text. Raw text is preferred for untrusted input since a
            payload with repeated member names is then rejected instead of
            being collapsed by the JSON decoder.

    Returns:
        VerificationResult: ``valid`` is True only when the signature
        matches the recomputed canonical form; the payload is echoed back
        only in that case.

    Raises:
        MalformedEnvelope: the envelope lacks ``payload``, ``signature`` or
            one of the signature fields
    """
    fields = _envelope_fields(envelope)

    if "payload" not in fields:
        raise MalformedEnvelope("Envelope has no payload")
    signature = fields.get("signature")
    if signature is None:
        raise MalformedEnvelope("Envelope has no signature")
    if not isinstance(signature, Mapping):
        raise MalformedEnvelope("Envelope signature must be an object")
    missing = [name for name in REQUIRED_SIGNATURE_FIELDS if name not in signature]
    if missing:
        raise MalformedEnvelope(f"Signature is missing {', '.join(missing)}")

    version = fields.get("version", ENVELOPE_VERSION)
    if isinstance(version, bool) or version != ENVELOPE_VERSION:
        return _reject(f"unsupported envelope version {version!r}")
    if signature["algorithm"] != SIGNATURE_ALGORITHM:
        return _reject(f"unsupported signature algorithm {signature['algorithm']!r}")

    try:
        tree = validate(fields["payload"])
        canonical = canonicalize(tree)
    except (InvalidPayload, CanonicalizationError) as e:
        return _reject(f"payload cannot be canonicalized: {e}")

    try:
        public_key = load_public_key(signature["publicKey"])
        signature_bytes = decode_signature(signature["value"])
    except CryptoFailure as e:
        return _reject(str(e))

    if not verify_bytes(canonical, signature_bytes, public_key):
        return _reject("signature does not match payload")

    logger.debug(f"Verified {SIGNATURE_ALGORITHM} signature over {len(canonical)} canonical bytes")
    return VerificationResult(valid=True, payload=tree.to_python())


async def verify_envelope_async(envelope: EnvelopeInput) -> VerificationResult:
    """Run :func:`verify_envelope` in a worker thread."""
    return await asyncio.to_thread(verify_envelope, envelope)
