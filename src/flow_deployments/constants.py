"""Configuration constants for flow-deployments library."""

# Project configuration file, looked up in the working directory
DEFAULT_CONFIG_PATH = "flow.json"
CONFIG_PATH_ENV = "FLOW_DEPLOYMENTS_CONFIG"

DEFAULT_GAS_LIMIT = 1000

# Network whose standard contracts are checked before deploying
CANONICAL_NETWORK = "mainnet"

# Access node REST endpoints
NETWORK_CONFIG = {
    "emulator": {
        "host": "http://127.0.0.1:8888",
        "default_host_env": "FLOW_EMULATOR_HOST",
    },
    "testnet": {
        "host": "https://rest-testnet.onflow.org",
        "default_host_env": "FLOW_TESTNET_HOST",
    },
    "mainnet": {
        "host": "https://rest-mainnet.onflow.org",
        "default_host_env": "FLOW_MAINNET_HOST",
    },
}

# Core contracts already deployed on mainnet: name -> (address, info link)
STANDARD_CONTRACTS = {
    "FungibleToken": (
        "0xf233dcee88fe0abe",
        "https://developers.flow.com/flow/core-contracts/fungible-token",
    ),
    "FlowToken": (
        "0x1654653399040a61",
        "https://developers.flow.com/flow/core-contracts/flow-token",
    ),
    "FlowFees": (
        "0xf919ee77447b7497",
        "https://developers.flow.com/flow/core-contracts/flow-fees",
    ),
    "FlowServiceAccount": (
        "0xe467b9dd11fa00df",
        "https://developers.flow.com/flow/core-contracts/service-account",
    ),
    "FlowStorageFees": (
        "0xe467b9dd11fa00df",
        "https://developers.flow.com/flow/core-contracts/service-account",
    ),
    "FlowIDTableStaking": (
        "0x8624b52f9ddcd04a",
        "https://developers.flow.com/flow/core-contracts/staking-contract-reference",
    ),
    "FlowEpoch": (
        "0x8624b52f9ddcd04a",
        "https://developers.flow.com/flow/core-contracts/epoch-contract-reference",
    ),
    "FlowClusterQC": (
        "0x8624b52f9ddcd04a",
        "https://developers.flow.com/flow/core-contracts/epoch-contract-reference",
    ),
    "FlowDKG": (
        "0x8624b52f9ddcd04a",
        "https://developers.flow.com/flow/core-contracts/epoch-contract-reference",
    ),
    "NonFungibleToken": (
        "0x1d7e57aa55817448",
        "https://developers.flow.com/flow/core-contracts/non-fungible-token",
    ),
    "MetadataViews": (
        "0x1d7e57aa55817448",
        "https://developers.flow.com/flow/core-contracts/nft-metadata",
    ),
}

# Domain tag prefixed to every signed transaction message, right-padded to 32 bytes
TRANSACTION_DOMAIN_TAG = b"FLOW-V0.0-transaction".ljust(32, b"\x00")
