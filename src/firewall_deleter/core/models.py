"""Wire models for firewall delete requests.

The JSON shape is shared with the other connectors on the bus, so field
names, key order and the omission of empty optional keys are fixed.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from .errors import DecodeError, SerializationError

# Ports are carried as signed 64-bit integers on the wire.
WireInt = Annotated[StrictInt, Field(ge=-(2**63), le=2**63 - 1)]

# Keys dropped from the wire when their value is empty.
_OMIT_WHEN_EMPTY = ("security_group_aws_id", "error")

# Escapes applied by the other bus producers; kept so re-serialized
# payloads are byte-identical to what they sent.
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _scrub_surrogates(obj: dict[str, Any]) -> dict[str, Any]:
    """Replace lone ``\\ud800``-style escapes with U+FFFD so the payload
    can be re-encoded as UTF-8."""
    return {_scrub(k): _scrub(v) for k, v in obj.items()}


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return value.encode("utf-16-le", "surrogatepass").decode(
            "utf-16-le", "replace"
        )
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        # Keys match field names case-insensitively and the last duplicate
        # wins. A JSON null leaves the field at its zero value.
        if not isinstance(data, dict):
            return data
        names = {
            (info.alias or name).casefold(): info.alias or name
            for name, info in cls.model_fields.items()
        }
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            if value is None or not isinstance(key, str):
                continue
            normalized[names.get(key.casefold(), key)] = value
        return normalized


class Rule(_WireModel):
    """One ingress or egress permission entry."""

    model_config = ConfigDict(frozen=True)

    ip: StrictStr = ""
    from_port: WireInt = 0
    to_port: WireInt = 0
    protocol: StrictStr = ""


class RuleSet(_WireModel):
    ingress: list[Rule] = Field(default_factory=list)
    egress: list[Rule] = Field(default_factory=list)

    @field_validator("ingress", "egress", mode="before")
    @classmethod
    def _null_rules_are_zero(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{} if rule is None else rule for rule in value]
        return value

    def __len__(self) -> int:
        return len(self.ingress) + len(self.egress)


class FirewallPayload(_WireModel):
    """A delete-firewall request as carried on the bus."""

    id: StrictStr = ""
    datacenter_vpc_id: StrictStr = ""
    datacenter_region: StrictStr = ""
    datacenter_access_key: StrictStr = Field(default="", repr=False)
    datacenter_access_token: StrictStr = Field(default="", repr=False)
    network_aws_id: StrictStr = ""
    security_group_aws_id: StrictStr = ""
    security_group_name: StrictStr = ""
    security_group_rules: RuleSet = Field(default_factory=RuleSet)
    error_message: StrictStr = Field(default="", alias="error")

    @classmethod
    def from_wire(cls, data: bytes | str) -> FirewallPayload:
        """Decode a raw bus payload.

        Invalid UTF-8 is replaced with U+FFFD and a top-level ``null``
        decodes to an empty payload, as the other bus producers' decoder
        does.

        Raises:
            DecodeError: the payload is not a JSON object of this shape.
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        try:
            obj = json.loads(data, object_hook=_scrub_surrogates)
            return cls.model_validate({} if obj is None else obj)
        except (ValueError, RecursionError) as exc:  # incl. ValidationError
            raise DecodeError(str(exc)) from exc

    def to_wire(self) -> bytes:
        """Encode as compact JSON in wire key order."""
        try:
            data = self.model_dump(mode="json", by_alias=True)
            for key in _OMIT_WHEN_EMPTY:
                if not data.get(key):
                    data.pop(key, None)
            text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(str(exc)) from exc

        for char, escaped in _JSON_ESCAPES.items():
            text = text.replace(char, escaped)
        return text.encode("utf-8")
