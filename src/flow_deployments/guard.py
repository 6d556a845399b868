"""Pre-flight checks run before a deployment is planned."""

import logging
from typing import Callable, Dict, List, Mapping, Optional

from .config import ProjectConfig
from .constants import CANONICAL_NETWORK, STANDARD_CONTRACTS
from .exceptions import ContractConflictError
from .types import StandardContract

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[StandardContract], bool]


def check_contract_conflicts(config: ProjectConfig, network: str) -> None:
    """
    Ensure no contract name is assigned to more than one account on a network.

    Raises:
        ContractConflictError: Naming every conflicting contract and its accounts
    """
    conflicts = config.conflicting_contracts(network)
    if conflicts:
        raise ContractConflictError(conflicts, network=network)


def standard_contract_registry() -> Dict[str, StandardContract]:
    """Build the registry of standard contracts on the canonical network."""
    return {
        name: StandardContract(name=name, address=address, info_link=info_link)
        for name, (address, info_link) in STANDARD_CONTRACTS.items()
    }


def replace_standard_contract(
    config: ProjectConfig,
    standard_contract: StandardContract,
    network: str = CANONICAL_NETWORK,
) -> None:
    """
    Use an already deployed standard contract instead of deploying it.

    Aliases the contract to the standard address so importers resolve to
    it, and removes it from the network's deployments.
    """
    config.set_alias(standard_contract.name, network, standard_contract.address)
    config.remove_deployment_contract(network, standard_contract.name)


def check_standard_contracts(
    config: ProjectConfig,
    confirm: ConfirmCallback,
    network: str = CANONICAL_NETWORK,
    registry: Optional[Mapping[str, StandardContract]] = None,
) -> List[StandardContract]:
    """
    Offer to replace deployments of standard contracts with their canonical address.

    Only applies to the canonical network; other networks are left untouched.

    Args:
        config: Project configuration (modified for confirmed replacements)
        confirm: Called once per standard contract found; True replaces it
        network: Network being deployed
        registry: Standard contracts by name (defaults to the built-in registry)

    Returns:
        Standard contracts that were replaced
    """
    if network != CANONICAL_NETWORK:
        return []

    if registry is None:
        registry = standard_contract_registry()

    replaced: List[StandardContract] = []
    for contract in config.contracts_for_network(network):
        standard_contract = registry.get(contract.name)
        if standard_contract is None:
            continue

        logger.warning(
            "It seems like you are trying to deploy %s to %s. "
            "It is a standard contract already deployed at address %s. "
            "You can read more about it here: %s",
            contract.name,
            network,
            standard_contract.address,
            standard_contract.info_link,
        )

        if confirm(standard_contract):
            replace_standard_contract(config, standard_contract, network)
            replaced.append(standard_contract)
            logger.info("%s will be imported from %s", contract.name, standard_contract.address)

    return replaced
