"""
Cryptographic primitives for json-seal.

RSA-PSS signing and verification, PEM key import/export and base64
transcoding, all delegated to the ``cryptography`` package.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)

from json_seal.core.errors import CryptoFailure

SIGNATURE_ALGORITHM = "RSA-PSS-SHA256"
PSS_SALT_LENGTH = 32
DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537

PemData = Union[str, bytes]


def _pss() -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=PSS_SALT_LENGTH)


def _as_bytes(pem: PemData) -> bytes:
    return pem.encode("ascii") if isinstance(pem, str) else bytes(pem)


@dataclass
class KeyPair:
    """Represents an RSA public/private key pair."""

    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey

    @classmethod
    def generate(cls, key_size: int = DEFAULT_KEY_SIZE) -> "KeyPair":
        """Generate a new key pair."""
        private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
        return cls(private_key=private_key, public_key=private_key.public_key())

    @classmethod
    def from_private_pem(cls, pem: PemData, password: Optional[bytes] = None) -> "KeyPair":
        """Create a KeyPair from a PKCS8 or PKCS1 PEM private key."""
        private_key = load_private_key(pem, password=password)
        return cls(private_key=private_key, public_key=private_key.public_key())

    def sign(self, data: bytes) -> bytes:
        """Sign data with the private key."""
        return sign_bytes(data, self.private_key)

    def verify(self, data: bytes, signature: bytes) -> bool:
        """Verify a signature."""
        return verify_bytes(data, signature, self.public_key)

    def private_pem(self) -> str:
        """Get the private key as unencrypted PKCS8 PEM."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    def public_pem(self) -> str:
        """Get the public key as SPKI PEM."""
        return public_key_pem(self.public_key)


def generate_keypair(key_size: int = DEFAULT_KEY_SIZE) -> Tuple[str, str]:
    """Generate a key pair and return it as ``(private_pem, public_pem)``."""
    key_pair = KeyPair.generate(key_size)
    return key_pair.private_pem(), key_pair.public_pem()


def load_private_key(
    key: Union[PemData, rsa.RSAPrivateKey, KeyPair],
    password: Optional[bytes] = None,
) -> rsa.RSAPrivateKey:
    """Import an RSA private key from PEM text or pass an imported key through."""
    if isinstance(key, KeyPair):
        return key.private_key
    if isinstance(key, rsa.RSAPrivateKey):
        return key
    if not isinstance(key, (str, bytes, bytearray)):
        raise CryptoFailure(f"Unsupported private key type: {type(key).__name__}")
    try:
        loaded = load_pem_private_key(_as_bytes(key), password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoFailure(f"Could not load private key: {e}") from e
    if not isinstance(loaded, rsa.RSAPrivateKey):
        raise CryptoFailure(f"Expected an RSA private key, got {type(loaded).__name__}")
    return loaded


def load_public_key(key: Union[PemData, rsa.RSAPublicKey, KeyPair]) -> rsa.RSAPublicKey:
    """Import an RSA public key from SPKI PEM text or pass an imported key through."""
    if isinstance(key, KeyPair):
        return key.public_key
    if isinstance(key, rsa.RSAPublicKey):
        return key
    if not isinstance(key, (str, bytes, bytearray)):
        raise CryptoFailure(f"Unsupported public key type: {type(key).__name__}")
    try:
        loaded = load_pem_public_key(_as_bytes(key))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoFailure(f"Could not load public key: {e}") from e
    if not isinstance(loaded, rsa.RSAPublicKey):
        raise CryptoFailure(f"Expected an RSA public key, got {type(loaded).__name__}")
    return loaded


def public_key_pem(public_key: rsa.RSAPublicKey) -> str:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def sign_bytes(data: bytes, private_key: rsa.RSAPrivateKey) -> bytes:
    """RSA-PSS sign ``data`` with SHA-256, MGF1-SHA-256 and a 32 byte salt."""
    try:
        return private_key.sign(data, _pss(), hashes.SHA256())
    except (ValueError, TypeError) as e:
        raise CryptoFailure(f"Signing failed: {e}") from e


def verify_bytes(data: bytes, signature: bytes, public_key: rsa.RSAPublicKey) -> bool:
    """Check an RSA-PSS signature made by :func:`sign_bytes`."""
    try:
        public_key.verify(signature, data, _pss(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


def encode_signature(signature: bytes) -> str:
    return base64.b64encode(signature).decode("ascii")


def decode_signature(value: str) -> bytes:
    """Decode a standard base64 signature, rejecting stray characters."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise CryptoFailure(f"Signature is not valid base64: {e}") from e
