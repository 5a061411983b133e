"""
Exception hierarchy for json-seal.

Validation and canonicalization errors are surfaced to callers when signing.
During verification they are folded into a negative result instead.
"""


class JsonSealError(Exception):
    """Base class for all json-seal errors."""

    pass


class InvalidPayload(JsonSealError, ValueError):
    """Raised when a value cannot be represented in the JSON data model."""

    pass


class CanonicalizationError(JsonSealError, ValueError):
    """Raised when canonicalization fails due to invalid input."""

    pass


class NonFiniteNumber(CanonicalizationError):
    """NaN or an infinity was found where a JSON number is required."""

    pass


class InvalidSurrogate(CanonicalizationError):
    """A string contains an unpaired UTF-16 surrogate."""

    pass


class DuplicateKey(CanonicalizationError):
    """An object carries the same member name more than once."""

    def __init__(self, key: str):
        super().__init__(f"Duplicate key in object: {key!r}")
        self.key = key


class UnsupportedKind(CanonicalizationError, TypeError):
    """A value outside the seven JSON kinds reached the canonicalizer."""

    pass


class MalformedEnvelope(JsonSealError, ValueError):
    """The envelope is too incomplete to attempt verification."""

    pass


class CryptoFailure(JsonSealError):
    """The cryptography provider rejected a key or failed to sign."""

    pass
