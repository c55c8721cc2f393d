"""
Tests for input validation and unit helpers.
"""

from decimal import Decimal

import pytest
from web3 import Web3

from licensechain.constants import DEFAULT_ADMIN_ROLE, MAX_UINT256, MINTER_ROLE
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.utils.units import calculate_gas_cost, ether_to_wei, role_hash, wei_to_ether
from licensechain.utils.validation import (
    is_valid_address,
    validate_address,
    validate_parallel,
    validate_rpc_url,
    validate_token_id,
    validate_uint,
)


# =============================================================================
# Addresses
# =============================================================================


class TestAddressValidation:

    def test_valid_address_is_checksummed(self) -> None:
        address = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
        assert validate_address(address) == Web3.to_checksum_address(address)

    @pytest.mark.parametrize(
        "address",
        ["", "0x123", "5fbdb2315678afecb367f032d93f642f64180aa3", "0x" + "g" * 40, None, 123],
    )
    def test_invalid_address(self, address: object) -> None:
        assert not is_valid_address(address)
        with pytest.raises(LicenseChainError) as exc_info:
            validate_address(address, "to")
        assert exc_info.value.kind is ErrorKind.INVALID_ADDRESS
        assert "to" in exc_info.value.message


# =============================================================================
# Integers
# =============================================================================


class TestUintValidation:

    def test_accepts_int_and_decimal_string(self) -> None:
        assert validate_uint(5) == 5
        assert validate_uint("12345678901234567890") == 12345678901234567890

    def test_large_values_keep_precision(self) -> None:
        assert validate_uint(str(MAX_UINT256)) == MAX_UINT256

    @pytest.mark.parametrize("value", [1.0, True, "1.5", "-1", -1, MAX_UINT256 + 1, None])
    def test_rejects_non_integral_or_out_of_range(self, value: object) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            validate_uint(value, "amount")
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR

    def test_token_id_must_be_positive(self) -> None:
        assert validate_token_id(1) == 1
        for bad in (0, -5, "abc", 2.0):
            with pytest.raises(LicenseChainError) as exc_info:
                validate_token_id(bad)
            assert exc_info.value.kind is ErrorKind.INVALID_TOKEN_ID


class TestParallelSequences:

    def test_equal_lengths(self) -> None:
        assert validate_parallel(("a", "b"), [1, 2], ["x", "y"]) == 2

    def test_length_mismatch(self) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            validate_parallel(("a", "b"), [1, 2], ["x"])
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
        assert exc_info.value.details["lengths"] == [2, 1]

    def test_empty(self) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            validate_parallel(("a", "b"), [], [])
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR


class TestRpcUrl:

    @pytest.mark.parametrize(
        "url", ["https://rpc.sepolia.org", "http://localhost:8545", "wss://node.example.com/ws"]
    )
    def test_accepted(self, url: str) -> None:
        assert validate_rpc_url(url) == url

    @pytest.mark.parametrize("url", ["", "ftp://example.com", "file:///etc/passwd", "https://"])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            validate_rpc_url(url)
        assert exc_info.value.kind is ErrorKind.INVALID_CONFIG


# =============================================================================
# Units and roles
# =============================================================================


class TestUnits:

    def test_wei_to_ether_is_exact(self) -> None:
        assert wei_to_ether(10**18) == "1.000000000000000000"
        assert wei_to_ether("1") == "0.000000000000000001"
        assert wei_to_ether(0) == "0.000000000000000000"

    def test_ether_to_wei(self) -> None:
        assert ether_to_wei("1") == str(10**18)
        assert ether_to_wei("0.5") == str(5 * 10**17)
        assert ether_to_wei(Decimal("2.25")) == str(225 * 10**16)
        assert ether_to_wei(3) == str(3 * 10**18)

    @pytest.mark.parametrize("amount", [1.5, True, "abc", "-1", "1e18"])
    def test_ether_to_wei_rejects(self, amount: object) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            ether_to_wei(amount)
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR

    def test_gas_cost(self) -> None:
        assert calculate_gas_cost(21_000, 20 * 10**9) == str(21_000 * 20 * 10**9)


class TestRoleHash:

    def test_role_name_is_keccak_of_utf8(self) -> None:
        assert role_hash(MINTER_ROLE) == Web3.to_hex(Web3.keccak(text="MINTER_ROLE"))

    def test_admin_role_is_zero_hash(self) -> None:
        assert role_hash(DEFAULT_ADMIN_ROLE) == "0x" + "00" * 32

    def test_bytes32_passes_through(self) -> None:
        value = "0x" + "AB" * 32
        assert role_hash(value) == value.lower()

    def test_empty_role_rejected(self) -> None:
        with pytest.raises(LicenseChainError):
            role_hash("")
