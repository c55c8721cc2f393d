"""
Tests for license metadata and its canonical encoding.
"""

import json

import pytest

from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.metadata import LicenseMetadata, parse_metadata


class TestCanonicalEncoding:

    def test_minimal(self) -> None:
        meta = LicenseMetadata(software="App", version="1.0.0")
        assert meta.to_canonical() == '{"features":[],"software":"App","version":"1.0.0"}'

    def test_keys_sorted_and_camel_case(self) -> None:
        meta = LicenseMetadata(
            software="App",
            version="2.1.0",
            features=["basic", "premium"],
            expires_at=1767225600,
            custom_data={"seats": 5, "region": "EU"},
        )
        text = meta.to_canonical()
        assert text == (
            '{"customData":{"region":"EU","seats":5},"expiresAt":1767225600,'
            '"features":["basic","premium"],"software":"App","version":"2.1.0"}'
        )
        assert " " not in text

    def test_non_ascii_kept_verbatim(self) -> None:
        meta = LicenseMetadata(software="Lizenz-Prüfer", version="1")
        assert "Lizenz-Prüfer" in meta.to_canonical()

    @pytest.mark.parametrize(
        "fields",
        [
            {"software": "App", "version": "1.0.0"},
            {"software": "App", "version": "1.0.0", "features": ["basic"]},
            {"software": "App", "version": "1.0.0", "features": ["a", "b", "c"]},
            {"software": "App", "version": "1.0.0", "expires_at": 0},
            {"software": "App", "version": "1.0.0", "custom_data": {"nested": {"x": [1, 2]}}},
        ],
    )
    def test_round_trip(self, fields: dict) -> None:
        meta = LicenseMetadata(**fields)
        assert LicenseMetadata.from_canonical(meta.to_canonical()) == meta

    def test_feature_order_preserved(self) -> None:
        meta = LicenseMetadata(software="App", version="1", features=["z", "a"])
        assert json.loads(meta.to_canonical())["features"] == ["z", "a"]


class TestValidation:

    def test_accepts_wire_names(self) -> None:
        meta = parse_metadata({"software": "App", "version": "1", "expiresAt": 10, "customData": {}})
        assert meta.expires_at == 10
        assert meta.custom_data == {}

    def test_instance_passes_through(self) -> None:
        meta = LicenseMetadata(software="App", version="1")
        assert parse_metadata(meta) is meta

    @pytest.mark.parametrize(
        "value",
        [
            {"version": "1"},
            {"software": "", "version": "1"},
            {"software": "App", "version": "1", "expiresAt": -1},
            {"software": "App", "version": "1", "expiresAt": 1.5},
            {"software": "App", "version": "1", "unexpected": True},
            {"software": "App", "version": "1", "customData": {"bad": float("nan")}},
            ["software", "App"],
            "App 1.0",
        ],
    )
    def test_invalid_metadata(self, value: object) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            parse_metadata(value)
        assert exc_info.value.kind is ErrorKind.INVALID_LICENSE_METADATA

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"software": "App"}', None])
    def test_unparseable_canonical_text(self, text: object) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            LicenseMetadata.from_canonical(text)
        assert exc_info.value.kind is ErrorKind.INVALID_LICENSE_METADATA

    def test_custom_data_stored_in_json_form(self) -> None:
        meta = LicenseMetadata(
            software="App", version="1", custom_data={"seats": (1, 2), "tier": {"name": "pro"}}
        )
        assert meta.custom_data == {"seats": [1, 2], "tier": {"name": "pro"}}
        assert LicenseMetadata.from_canonical(meta.to_canonical()) == meta

    @pytest.mark.parametrize(
        "custom_data",
        [{"limits": {1: "x"}}, {"rows": [{2: "y"}]}],
    )
    def test_non_string_custom_data_keys_rejected(self, custom_data: dict) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            parse_metadata({"software": "App", "version": "1", "customData": custom_data})
        assert exc_info.value.kind is ErrorKind.INVALID_LICENSE_METADATA
        assert "keys must be strings" in exc_info.value.message

    def test_is_expired(self) -> None:
        meta = LicenseMetadata(software="App", version="1", expires_at=100)
        assert meta.is_expired(100)
        assert not meta.is_expired(99)
        assert not LicenseMetadata(software="App", version="1").is_expired(10**12)
