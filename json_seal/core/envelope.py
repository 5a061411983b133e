"""
Signed envelope construction.

A payload is validated, canonicalized, signed with RSA-PSS over the UTF-8
canonical bytes and wrapped together with the signature metadata.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from cryptography.hazmat.primitives.asymmetric import rsa

from json_seal.core.canonicalization import canonicalize
from json_seal.core.crypto import (
    SIGNATURE_ALGORITHM,
    KeyPair,
    encode_signature,
    load_private_key,
    load_public_key,
    public_key_pem,
    sign_bytes,
)
from json_seal.core.errors import CryptoFailure
from json_seal.core.models import ENVELOPE_VERSION, SignatureBlock, SignedEnvelope
from json_seal.core.validation import validate

logger = logging.getLogger(__name__)

PrivateKeyInput = Union[str, bytes, rsa.RSAPrivateKey, KeyPair]
PublicKeyInput = Union[str, bytes, rsa.RSAPublicKey, KeyPair]


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a UTC ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sign_payload(
    payload: Any,
    private_key: PrivateKeyInput,
    public_key: Optional[PublicKeyInput] = None,
    *,
    timestamp: Optional[Union[datetime, str]] = None,
    password: Optional[bytes] = None,
) -> SignedEnvelope:
    """Sign a JSON payload and return the envelope.

    Args:
        payload: JSON data; it is copied into the envelope, never mutated
        private_key: PEM text (PKCS8 or PKCS1), an RSA key or a KeyPair
        public_key: optional public half to embed; it must match
            ``private_key`` and is derived from it when omitted
        timestamp: creation time to record, defaults to now. The timestamp
            is not covered by the signature.
        password: passphrase for an encrypted PEM private key

    Raises:
        InvalidPayload: the payload is not representable as JSON
        CanonicalizationError: the payload cannot be canonicalized
        CryptoFailure: unusable keys or a failure inside the signer
    """
    tree = validate(payload)
    canonical = canonicalize(tree)

    signer = load_private_key(private_key, password=password)
    derived = signer.public_key()
    if public_key is not None:
        claimed = load_public_key(public_key)
        if claimed.public_numbers() != derived.public_numbers():
            raise CryptoFailure("Public key does not belong to the signing key")

    signature = sign_bytes(canonical, signer)
    logger.debug(f"Signed {len(canonical)} canonical bytes with {SIGNATURE_ALGORITHM}")

    if not isinstance(timestamp, str):
        timestamp = format_timestamp(timestamp)

    return SignedEnvelope(
        version=ENVELOPE_VERSION,
        timestamp=timestamp,
        payload=tree.to_python(),
        signature=SignatureBlock(
            algorithm=SIGNATURE_ALGORITHM,
            public_key=public_key_pem(derived),
            value=encode_signature(signature),
        ),
    )


async def sign_payload_async(
    payload: Any,
    private_key: PrivateKeyInput,
    public_key: Optional[PublicKeyInput] = None,
    **kwargs: Any,
) -> SignedEnvelope:
    """Run :func:`sign_payload` in a worker thread.

    The payload is read from that thread, so it must not be mutated until
    the call completes.
    """
    return await asyncio.to_thread(sign_payload, payload, private_key, public_key, **kwargs)
