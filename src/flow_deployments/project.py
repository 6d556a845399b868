"""Main API for flow-deployments library."""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from .config import ProjectConfig, load_config
from .constants import CANONICAL_NETWORK
from .exceptions import NetworkNotFoundError
from .executor import DeploymentExecutor, SignerProvider
from .gateway import Gateway, HttpGateway
from .guard import (
    ConfirmCallback,
    check_contract_conflicts,
    check_standard_contracts,
    replace_standard_contract,
)
from .planner import DeploymentPlan, deployment_order
from .resolver import resolve_contracts
from .transactions import TransactionTemplates
from .types import ContractUnit, DeploymentReport, StandardContract

logger = logging.getLogger(__name__)

SourceLoader = Callable[[str], str]


class Project:
    """Deploys a project's contracts to a network."""

    def __init__(
        self,
        config: ProjectConfig,
        gateway: Gateway,
        signer_provider: SignerProvider,
        templates: Optional[TransactionTemplates] = None,
        source_loader: Optional[SourceLoader] = None,
        payer: Optional[str] = None,
    ):
        """
        Initialize the project.

        Args:
            config: Project configuration
            gateway: Network access
            signer_provider: Returns a signer for (account, key index)
            templates: Transaction builder (defaults to ContractTemplates)
            source_loader: Reads a contract source by location
                           (defaults to reading files next to the configuration)
            payer: Name of the account paying fees (defaults to each target account)

        Raises:
            AccountNotFoundError: If payer is not a configured account
        """
        self.config = config
        self.gateway = gateway
        self.signer_provider = signer_provider
        self.templates = templates
        self.source_loader = source_loader or config.read_source
        self.payer = config.account_by_name(payer) if payer is not None else None

    def replace_standard_contract(self, standard_contract: StandardContract) -> None:
        """Import a standard contract from its canonical address instead of deploying it."""
        replace_standard_contract(self.config, standard_contract, CANONICAL_NETWORK)

    def check_standard_contracts(self, confirm: ConfirmCallback) -> List[StandardContract]:
        """
        Detect standard contracts in the canonical network's deployments.

        Args:
            confirm: Asked once per standard contract; True imports it from
                     the canonical address instead of redeploying it

        Returns:
            Standard contracts that were replaced
        """
        return check_standard_contracts(self.config, confirm, CANONICAL_NETWORK)

    def contract_units(self, network: str) -> List[ContractUnit]:
        """
        Load every contract deployed on a network, in declaration order.

        Raises:
            ContractConflictError: If a contract is assigned to several accounts
            NetworkNotFoundError: If nothing is deployed on the network
        """
        check_contract_conflicts(self.config, network)

        contracts = self.config.contracts_for_network(network)
        if not contracts and not self.config.has_network(network):
            raise NetworkNotFoundError(f"no deployments configured for network '{network}'")

        return [
            ContractUnit(
                name=contract.name,
                account_name=contract.account_name,
                account_address=contract.account_address,
                source=self.source_loader(contract.source),
                location=contract.source,
                args=contract.args,
            )
            for contract in contracts
        ]

    def plan(self, network: str) -> DeploymentPlan:
        """
        Resolve imports and order a network's contracts for deployment.

        No network calls are made.

        Raises:
            ContractConflictError: If a contract is assigned to several accounts
            DuplicateContractError: If a contract is listed twice for one account
            UnresolvedImportError: If an import cannot be bound to an address
            DependencyCycleError: If imports form a cycle
        """
        # Fresh alias table per call
        aliases = self.config.aliases_for_network(network)
        units = resolve_contracts(self.contract_units(network), aliases)
        return deployment_order(units)

    def deploy(self, network: str, update: bool = False) -> DeploymentReport:
        """
        Deploy all contracts configured for a network.

        Structural problems (conflicts, unresolved imports, cycles) raise
        before anything is sent. Per-contract failures are collected in the
        report and do not stop the run.

        Args:
            network: Network name
            update: Update contracts that are already deployed with different code

        Returns:
            DeploymentReport in deployment order
        """
        plan = self.plan(network)

        logger.info(
            "Deploying %d contracts for accounts: %s",
            len(plan),
            ",".join(self.config.account_names_for_network(network)),
        )

        executor = DeploymentExecutor(
            self.gateway,
            self.config.accounts,
            self.signer_provider,
            templates=self.templates,
            payer=self.payer,
        )
        return executor.execute(plan, network, update=update)


def deploy_project(
    network: str,
    signer_provider: SignerProvider,
    config_path: Optional[Union[Path, str]] = None,
    update: bool = False,
    host: Optional[str] = None,
    confirm_standard: Optional[ConfirmCallback] = None,
) -> DeploymentReport:
    """
    Load a project file and deploy its contracts over the REST API.

    Args:
        network: Network name
        signer_provider: Returns a signer for (account, key index)
        config_path: Project file (defaults to $FLOW_DEPLOYMENTS_CONFIG or ./flow.json)
        update: Update contracts that are already deployed with different code
        host: Access node URL (defaults to the network's configured host)
        confirm_standard: When given and deploying to mainnet, asked whether
                          each standard contract should be imported instead

    Returns:
        DeploymentReport in deployment order

    Raises:
        ConfigNotFoundError: If the project file does not exist
        DeploymentError: On structural problems, before anything is sent
    """
    config = load_config(config_path)
    if host is None:
        host = config.host_for_network(network)

    project = Project(config, HttpGateway(host), signer_provider)
    if confirm_standard is not None and network == CANONICAL_NETWORK:
        project.check_standard_contracts(confirm_standard)

    return project.deploy(network, update=update)
