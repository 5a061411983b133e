"""Core data models: the JSON value tree and the signed envelope record."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, Union

from dateutil import parser as date_parser
from pydantic import BaseModel, Field

from json_seal.core.crypto import SIGNATURE_ALGORITHM

ENVELOPE_VERSION = 1


# JSON value tree. Objects keep their members as ordered pairs so that a
# repeated name survives parsing and can be rejected later.

@dataclass(frozen=True)
class JsonNull:
    def to_python(self) -> None:
        return None


@dataclass(frozen=True)
class JsonBool:
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class JsonNumber:
    """A float64 number. Integers are kept as ``int`` for a faithful echo."""

    value: Union[int, float]

    def to_python(self) -> Union[int, float]:
        return self.value


@dataclass(frozen=True)
class JsonString:
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class JsonArray:
    items: Tuple["JsonValue", ...] = ()

    def __iter__(self) -> Iterator["JsonValue"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class JsonObject:
    members: Tuple[Tuple[str, "JsonValue"], ...] = ()

    def keys(self) -> List[str]:
        return [key for key, _ in self.members]

    def get(self, key: str, default: Optional["JsonValue"] = None) -> Optional["JsonValue"]:
        """Return the first member named ``key``."""
        for name, value in self.members:
            if name == key:
                return value
        return default

    def __len__(self) -> int:
        return len(self.members)

    def to_python(self) -> Dict[str, Any]:
        # With duplicate names the last member wins, as in json.loads.
        return {key: value.to_python() for key, value in self.members}


JSON_NULL = JsonNull()

JsonValue = Union[JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject]

JSON_NODE_TYPES = (JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject)


# Envelope records

class SignatureBlock(BaseModel):
    """Signature metadata produced once at signing time."""

    model_config = {"frozen": True, "populate_by_name": True}

    algorithm: Literal["RSA-PSS-SHA256"] = Field(
        SIGNATURE_ALGORITHM,
        description="Signature algorithm identifier."
    )
    public_key: str = Field(
        ...,
        alias="publicKey",
        description="SPKI PEM of the key that verifies this signature."
    )
    value: str = Field(
        ...,
        description="Standard base64 encoding of the signature bytes."
    )


class SignedEnvelope(BaseModel):
    """A payload together with a signature over its canonical form.

    Only ``payload`` is covered by the signature. ``timestamp`` is advisory
    metadata that anyone holding the envelope can rewrite; put the time in
    the payload itself when its integrity matters.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    version: Literal[1] = Field(
        ENVELOPE_VERSION,
        description="Envelope format version."
    )
    timestamp: str = Field(
        ...,
        description="Creation time (ISO-8601). Not signed."
    )
    payload: Any = Field(
        ...,
        description="The signed JSON value."
    )
    signature: SignatureBlock = Field(
        ...,
        description="Signature over the canonical form of the payload."
    )

    @property
    def issued_at(self) -> datetime:
        """The unsigned creation timestamp parsed into a datetime."""
        return date_parser.isoparse(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation with camelCase member names."""
        return self.model_dump(by_alias=True)

    def to_json(self, **kwargs: Any) -> str:
        kwargs.setdefault("ensure_ascii", False)
        return json.dumps(self.to_dict(), allow_nan=False, **kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedEnvelope":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "SignedEnvelope":
        # Repeated member names collapse here; pass raw text to
        # verify_envelope to have them rejected.
        return cls.model_validate_json(text)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying an envelope.

    ``payload`` is only set when ``valid`` is true. ``reason`` is a
    diagnostic for logs and must not drive trust decisions.
    """

    valid: bool
    payload: Any = None
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid
