"""
License metadata and its canonical on-chain encoding.

The license contract stores metadata as an opaque string. ``to_canonical``
produces a stable JSON text (sorted keys, no insignificant whitespace,
absent optional fields omitted) and ``from_canonical`` parses it back, so a
value written through the SDK reads back equal in every field.

Example:
    >>> meta = LicenseMetadata(software="App", version="1.0.0", features=["basic"])
    >>> meta.to_canonical()
    '{"features":["basic"],"software":"App","version":"1.0.0"}'
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from licensechain.errors import LicenseChainError

__all__ = ["LicenseMetadata", "parse_metadata"]


def _check_keys(value: Any, path: str) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{path} keys must be strings, got {key!r}")
            _check_keys(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_keys(item, f"{path}[{index}]")


class LicenseMetadata(BaseModel):
    """
    Software license metadata.

    Attributes:
        software: Licensed product name
        version: Licensed product version
        features: Enabled feature flags, order preserved
        expires_at: Unix timestamp after which the license lapses
        custom_data: Free-form JSON-compatible extra fields
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    software: str = Field(min_length=1)
    version: str = Field(min_length=1)
    features: Tuple[str, ...] = Field(default=())
    expires_at: Optional[int] = Field(default=None, alias="expiresAt", ge=0, strict=True)
    custom_data: Optional[Dict[str, Any]] = Field(default=None, alias="customData")

    @field_validator("custom_data")
    @classmethod
    def _json_compatible(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Store customData in its JSON form so it reads back unchanged.

        Tuples become lists. Non-string object keys are rejected: JSON would
        turn them into strings and two keys could collapse into one.
        """
        if value is None:
            return value
        _check_keys(value, "customData")
        try:
            return json.loads(json.dumps(value, allow_nan=False))
        except (TypeError, ValueError) as e:
            raise ValueError(f"customData must be JSON serializable: {e}") from None

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_canonical(self) -> str:
        """Serialize to the canonical string stored on-chain."""
        payload = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_canonical(cls, text: str) -> "LicenseMetadata":
        """Parse metadata read back from the contract.

        Raises:
            LicenseChainError: INVALID_LICENSE_METADATA if the text is not
                valid metadata JSON
        """
        try:
            payload = json.loads(text)
        except (TypeError, ValueError) as e:
            raise LicenseChainError.invalid_metadata(text, f"not valid JSON ({e})") from e
        if not isinstance(payload, dict):
            raise LicenseChainError.invalid_metadata(text, "expected a JSON object")
        return parse_metadata(payload)


def parse_metadata(value: Any) -> LicenseMetadata:
    """
    Validate caller-supplied metadata at the SDK boundary.

    Accepts a LicenseMetadata instance or a mapping using either the
    snake_case field names or the camelCase wire names.

    Raises:
        LicenseChainError: INVALID_LICENSE_METADATA
    """
    if isinstance(value, LicenseMetadata):
        return value
    if not isinstance(value, dict):
        raise LicenseChainError.invalid_metadata(value, "expected a mapping")
    try:
        return LicenseMetadata.model_validate(value)
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise LicenseChainError.invalid_metadata(value, reason) from e
