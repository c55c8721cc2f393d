"""
ABI descriptions of the external license contracts.

The contracts themselves are deployed independently; the SDK only needs
the interface it calls through. Three flavors share the license interface:
the plain license contract, the multi-signature variant (extra constructor
parameters plus confirmation functions) and the upgradeable proxy.
"""

from typing import Any, Dict, List, Sequence, Tuple

Param = Tuple[str, str]


def _params(params: Sequence[Param]) -> List[Dict[str, str]]:
    return [{"name": name, "type": type_} for name, type_ in params]


def _function(
    name: str,
    inputs: Sequence[Param] = (),
    outputs: Sequence[Param] = (),
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
        "stateMutability": mutability,
    }


def _view(name: str, inputs: Sequence[Param] = (), outputs: Sequence[Param] = ()) -> Dict[str, Any]:
    return _function(name, inputs, outputs, "view")


def _constructor(inputs: Sequence[Param]) -> Dict[str, Any]:
    return {"type": "constructor", "inputs": _params(inputs), "stateMutability": "nonpayable"}


def _event(name: str, inputs: Sequence[Tuple[str, str, bool]]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": arg, "type": type_, "indexed": indexed} for arg, type_, indexed in inputs
        ],
    }


LICENSE_CONSTRUCTOR_PARAMS: List[Param] = [
    ("name", "string"),
    ("symbol", "string"),
    ("baseURI", "string"),
    ("maxSupply", "uint256"),
    ("royaltyRecipient", "address"),
    ("royaltyFee", "uint96"),
]

LICENSE_FUNCTIONS: List[Dict[str, Any]] = [
    _view("name", outputs=[("", "string")]),
    _view("symbol", outputs=[("", "string")]),
    _view("totalSupply", outputs=[("", "uint256")]),
    _view("maxSupply", outputs=[("", "uint256")]),
    _view("owner", outputs=[("", "address")]),
    _view("ownerOf", [("tokenId", "uint256")], [("", "address")]),
    _function("mintLicense", [("to", "address"), ("tokenId", "uint256"), ("metadata", "string")]),
    _view("verifyLicense", [("tokenId", "uint256")], [("", "bool")]),
    _view("getLicenseMetadata", [("tokenId", "uint256")], [("", "string")]),
    _function(
        "transferLicense", [("from", "address"), ("to", "address"), ("tokenId", "uint256")]
    ),
    _function("revokeLicense", [("tokenId", "uint256")]),
    _function(
        "batchMintLicenses",
        [("tos", "address[]"), ("tokenIds", "uint256[]"), ("metadatas", "string[]")],
    ),
    _function("grantRole", [("role", "bytes32"), ("account", "address")]),
    _function("revokeRole", [("role", "bytes32"), ("account", "address")]),
    _view("hasRole", [("role", "bytes32"), ("account", "address")], [("", "bool")]),
    _function("pause"),
    _function("unpause"),
    _view("isPaused", outputs=[("", "bool")]),
]

LICENSE_EVENTS: List[Dict[str, Any]] = [
    _event(
        "LicenseMinted",
        [("to", "address", True), ("tokenId", "uint256", True), ("metadata", "string", False)],
    ),
    _event(
        "LicenseTransferred",
        [("from", "address", True), ("to", "address", True), ("tokenId", "uint256", True)],
    ),
    _event("LicenseRevoked", [("tokenId", "uint256", True)]),
    _event(
        "RoleGranted",
        [("role", "bytes32", True), ("account", "address", True), ("sender", "address", True)],
    ),
    _event(
        "RoleRevoked",
        [("role", "bytes32", True), ("account", "address", True), ("sender", "address", True)],
    ),
]

LICENSE_ABI: List[Dict[str, Any]] = (
    [_constructor(LICENSE_CONSTRUCTOR_PARAMS)] + LICENSE_FUNCTIONS + LICENSE_EVENTS
)

MULTISIG_LICENSE_ABI: List[Dict[str, Any]] = (
    [
        _constructor(
            LICENSE_CONSTRUCTOR_PARAMS
            + [("requiredSignatures", "uint256"), ("signers", "address[]")]
        )
    ]
    + LICENSE_FUNCTIONS
    + [
        _function(
            "submitTransaction",
            [("destination", "address"), ("value", "uint256"), ("data", "bytes")],
            [("", "uint256")],
        ),
        _function("confirmTransaction", [("transactionId", "uint256")]),
        _function("executeTransaction", [("transactionId", "uint256")]),
        _view("getConfirmationCount", [("transactionId", "uint256")], [("", "uint256")]),
        _view("isConfirmed", [("transactionId", "uint256")], [("", "bool")]),
    ]
    + LICENSE_EVENTS
)

UPGRADEABLE_LICENSE_ABI: List[Dict[str, Any]] = (
    [_constructor([("implementation", "address")] + LICENSE_CONSTRUCTOR_PARAMS)]
    + LICENSE_FUNCTIONS
    + [
        _function("upgradeTo", [("newImplementation", "address")]),
        _function("upgradeToAndCall", [("newImplementation", "address"), ("data", "bytes")]),
        _view("implementation", outputs=[("", "address")]),
        _view("admin", outputs=[("", "address")]),
    ]
    + LICENSE_EVENTS
)

__all__ = [
    "LICENSE_ABI",
    "MULTISIG_LICENSE_ABI",
    "UPGRADEABLE_LICENSE_ABI",
    "LICENSE_CONSTRUCTOR_PARAMS",
]
