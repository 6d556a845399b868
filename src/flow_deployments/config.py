"""Project configuration model and loader for flow-deployments library."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .addresses import normalize_address
from .constants import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH, NETWORK_CONFIG
from .exceptions import (
    AccountNotFoundError,
    ConfigNotFoundError,
    ConfigurationError,
    NetworkNotFoundError,
)
from .types import ContractArgument


@dataclass
class KeyConfig:
    """Signing key reference of an account. Key material stays opaque."""

    index: int = 0
    type: str = "hex"
    signature_algorithm: str = "ECDSA_P256"
    hash_algorithm: str = "SHA3_256"
    private_key: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AccountConfig:
    name: str
    address: str  # Normalized
    key: KeyConfig = field(default_factory=KeyConfig)


@dataclass
class NetworkConfig:
    name: str
    host: str


@dataclass
class ContractConfig:
    name: str
    source: str  # Path relative to the configuration file
    aliases: Dict[str, str] = field(default_factory=dict)  # network -> address


@dataclass
class ContractDeploymentConfig:
    name: str
    args: Tuple[ContractArgument, ...] = ()


@dataclass
class DeploymentConfig:
    network: str
    account: str
    contracts: List[ContractDeploymentConfig] = field(default_factory=list)


@dataclass(frozen=True)
class NetworkContract:
    """A contract assigned to an account for one network."""

    name: str
    source: str
    account_name: str
    account_address: str
    args: Tuple[ContractArgument, ...] = ()


@dataclass
class ProjectConfig:
    """Parsed project configuration."""

    accounts: Dict[str, AccountConfig] = field(default_factory=dict)
    networks: Dict[str, NetworkConfig] = field(default_factory=dict)
    contracts: Dict[str, ContractConfig] = field(default_factory=dict)
    deployments: List[DeploymentConfig] = field(default_factory=list)
    base_dir: Path = field(default_factory=Path.cwd)

    def account_by_name(self, name: str) -> AccountConfig:
        """
        Get an account by name.

        Raises:
            AccountNotFoundError: If account is not configured
        """
        if name not in self.accounts:
            raise AccountNotFoundError(f"account '{name}' not found in configuration")
        return self.accounts[name]

    def account_by_address(self, address: str) -> Optional[AccountConfig]:
        address = normalize_address(address)
        for account in self.accounts.values():
            if account.address == address:
                return account
        return None

    def has_network(self, network: str) -> bool:
        return network in self.networks or any(
            d.network == network for d in self.deployments
        )

    def host_for_network(self, network: str) -> str:
        """
        Get the access node host for a network.

        Configured host wins, then the network's environment variable,
        then the built-in default.

        Raises:
            NetworkNotFoundError: If the network is unknown
        """
        if network in self.networks:
            return self.networks[network].host

        defaults = NETWORK_CONFIG.get(network)
        if defaults is None:
            raise NetworkNotFoundError(f"network '{network}' not found in configuration")
        return os.environ.get(defaults["default_host_env"], defaults["host"])

    def contracts_for_network(self, network: str) -> List[NetworkContract]:
        """
        Get all contracts deployed on a network, in declaration order.

        Args:
            network: Network name

        Returns:
            List of NetworkContract entries

        Raises:
            ConfigurationError: If a deployment names an undeclared contract
            AccountNotFoundError: If a deployment names an unknown account
        """
        result: List[NetworkContract] = []
        for deployment in self.deployments:
            if deployment.network != network:
                continue

            account = self.account_by_name(deployment.account)
            for entry in deployment.contracts:
                contract = self.contracts.get(entry.name)
                if contract is None:
                    raise ConfigurationError(
                        f"deployment on '{network}' references undeclared contract '{entry.name}'"
                    )
                result.append(
                    NetworkContract(
                        name=entry.name,
                        source=contract.source,
                        account_name=account.name,
                        account_address=account.address,
                        args=entry.args,
                    )
                )
        return result

    def account_names_for_network(self, network: str) -> List[str]:
        names: List[str] = []
        for deployment in self.deployments:
            if deployment.network == network and deployment.account not in names:
                names.append(deployment.account)
        return names

    def conflicting_contracts(self, network: str) -> Dict[str, List[str]]:
        """
        Find contract names assigned to more than one account on a network.

        Returns:
            Mapping contract name -> account names, only for conflicting names
        """
        accounts_by_name: Dict[str, List[str]] = {}
        for deployment in self.deployments:
            if deployment.network != network:
                continue
            for entry in deployment.contracts:
                accounts = accounts_by_name.setdefault(entry.name, [])
                if deployment.account not in accounts:
                    accounts.append(deployment.account)

        return {name: accounts for name, accounts in accounts_by_name.items() if len(accounts) > 1}

    def contract_conflict_exists(self, network: str) -> bool:
        return bool(self.conflicting_contracts(network))

    def aliases_for_network(self, network: str) -> Dict[str, str]:
        """Contract name -> address for every contract aliased on a network."""
        return {
            contract.name: contract.aliases[network]
            for contract in self.contracts.values()
            if network in contract.aliases
        }

    def set_alias(self, contract_name: str, network: str, address: str) -> None:
        """
        Alias a declared contract to an existing address on a network.

        Raises:
            ConfigurationError: If the contract is not declared
        """
        if contract_name not in self.contracts:
            raise ConfigurationError(f"contract '{contract_name}' not declared in configuration")
        self.contracts[contract_name].aliases[network] = normalize_address(address)

    def remove_deployment_contract(self, network: str, contract_name: str) -> None:
        """Drop a contract from every deployment on a network."""
        for deployment in self.deployments:
            if deployment.network != network:
                continue
            deployment.contracts = [c for c in deployment.contracts if c.name != contract_name]

    def source_path(self, location: str) -> Path:
        path = Path(location)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def read_source(self, location: str) -> str:
        """
        Read a contract source relative to the configuration directory.

        Raises:
            ConfigurationError: If the source file cannot be read
        """
        path = self.source_path(location)
        try:
            return path.read_text()
        except OSError as e:
            raise ConfigurationError(f"failed to read contract source {path}: {e}") from e


def get_default_config_path() -> Path:
    """
    Get the configuration path to use when none is given.

    Returns:
        $FLOW_DEPLOYMENTS_CONFIG if set, else ./flow.json
    """
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path).absolute()
    return Path.cwd() / DEFAULT_CONFIG_PATH


def _parse_args(raw_args: Any, contract_name: str) -> Tuple[ContractArgument, ...]:
    if raw_args is None:
        return ()
    if not isinstance(raw_args, list):
        raise ConfigurationError(f"args of contract '{contract_name}' must be a list")

    args = []
    for raw in raw_args:
        if not isinstance(raw, dict) or "type" not in raw or "value" not in raw:
            raise ConfigurationError(
                f"argument of contract '{contract_name}' must have 'type' and 'value': {raw!r}"
            )
        args.append(ContractArgument(type=raw["type"], value=raw["value"]))
    return tuple(args)


def _parse_key(raw_key: Any, account_name: str) -> KeyConfig:
    # Plain string is a hex private key at index 0
    if isinstance(raw_key, str):
        return KeyConfig(private_key=raw_key)
    if not isinstance(raw_key, dict):
        raise ConfigurationError(f"invalid key for account '{account_name}'")

    known = {"type", "index", "signatureAlgorithm", "hashAlgorithm", "privateKey"}
    return KeyConfig(
        index=int(raw_key.get("index", 0)),
        type=raw_key.get("type", "hex"),
        signature_algorithm=raw_key.get("signatureAlgorithm", "ECDSA_P256"),
        hash_algorithm=raw_key.get("hashAlgorithm", "SHA3_256"),
        private_key=raw_key.get("privateKey"),
        context={k: v for k, v in raw_key.items() if k not in known},
    )


def parse_config(data: Dict[str, Any], base_dir: Optional[Path] = None) -> ProjectConfig:
    """
    Build a ProjectConfig from decoded JSON.

    Args:
        data: Decoded configuration document
        base_dir: Directory contract sources are relative to (defaults to cwd)

    Returns:
        ProjectConfig

    Raises:
        ConfigurationError: If the document is malformed
    """
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a JSON object")

    config = ProjectConfig(base_dir=base_dir or Path.cwd())

    try:
        for name, raw in data.get("networks", {}).items():
            host = raw["host"] if isinstance(raw, dict) else raw
            config.networks[name] = NetworkConfig(name=name, host=host)

        for name, raw in data.get("accounts", {}).items():
            config.accounts[name] = AccountConfig(
                name=name,
                address=normalize_address(raw["address"]),
                key=_parse_key(raw.get("key", {}), name),
            )

        for name, raw in data.get("contracts", {}).items():
            if isinstance(raw, str):
                config.contracts[name] = ContractConfig(name=name, source=raw)
            else:
                config.contracts[name] = ContractConfig(
                    name=name,
                    source=raw["source"],
                    aliases={
                        network: normalize_address(address)
                        for network, address in raw.get("aliases", {}).items()
                    },
                )

        for network, by_account in data.get("deployments", {}).items():
            for account_name, entries in by_account.items():
                contracts = []
                for entry in entries:
                    if isinstance(entry, str):
                        contracts.append(ContractDeploymentConfig(name=entry))
                    else:
                        contracts.append(
                            ContractDeploymentConfig(
                                name=entry["name"],
                                args=_parse_args(entry.get("args"), entry["name"]),
                            )
                        )
                config.deployments.append(
                    DeploymentConfig(network=network, account=account_name, contracts=contracts)
                )
    except ConfigurationError:
        raise
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigurationError(f"malformed configuration: {e!r}") from e
    except ValueError as e:
        raise ConfigurationError(f"malformed configuration: {e}") from e

    return config


def load_config(path: Optional[Union[Path, str]] = None) -> ProjectConfig:
    """
    Load project configuration from a JSON file.

    Args:
        path: Configuration file (defaults to $FLOW_DEPLOYMENTS_CONFIG or ./flow.json)

    Returns:
        ProjectConfig with sources resolved relative to the file's directory

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigurationError: If the file is not valid configuration
    """
    config_path = get_default_config_path() if path is None else Path(path).absolute()

    if not config_path.exists():
        raise ConfigNotFoundError(f"configuration not found at {config_path}")

    try:
        with open(config_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"invalid JSON in {config_path}: {e}") from e

    return parse_config(data, base_dir=config_path.parent)
