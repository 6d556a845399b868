"""Custom exception classes for flow-deployments library."""

from typing import Dict, List, Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when the project configuration is malformed."""

    pass


class ConfigNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when the project configuration file is not found."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when requested network has no configuration or deployments."""

    pass


class AccountNotFoundError(DeploymentError, ValueError):
    """Raised when an account is missing from configuration or from the chain."""

    pass


class UnresolvedImportError(DeploymentError, ValueError):
    """Raised when a contract imports a name that resolves to no address."""

    def __init__(self, contract_name: str, import_name: str):
        self.contract_name = contract_name
        self.import_name = import_name
        super().__init__(
            f"import {import_name} in contract {contract_name} could not be resolved: "
            "it is neither deployed in this run nor aliased on the network"
        )


class DependencyCycleError(DeploymentError, ValueError):
    """Raised when contract imports form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"import cycle detected: {' -> '.join(cycle)}")


class ContractConflictError(DeploymentError, ValueError):
    """Raised when a contract name is assigned to several accounts on one network."""

    def __init__(self, conflicts: Dict[str, List[str]], network: Optional[str] = None):
        self.network = network
        self.conflicts = conflicts
        details = ", ".join(
            f"{name} ({', '.join(accounts)})" for name, accounts in conflicts.items()
        )
        scope = f" on network '{network}'" if network else ""
        super().__init__(
            f"the same contract cannot be deployed to multiple accounts{scope}: {details}"
        )


class DuplicateContractError(DeploymentError, ValueError):
    """Raised when a contract is listed more than once for the same account."""

    def __init__(self, contract_name: str, account_name: str):
        self.contract_name = contract_name
        self.account_name = account_name
        super().__init__(
            f"contract {contract_name} is listed more than once for account {account_name}"
        )


class ContractExistsError(DeploymentError):
    """Raised when a contract is already deployed and update was not requested."""

    pass


class UpdateWithArgumentsError(DeploymentError):
    """Raised when an existing contract would be updated with initialization arguments."""

    pass


class SigningError(DeploymentError):
    """Raised when a transaction cannot be signed."""

    pass


class GatewayError(DeploymentError, RuntimeError):
    """Raised on transport failures talking to the access node."""

    pass


class TransactionFailedError(DeploymentError):
    """Raised when the network rejects a submitted transaction."""

    def __init__(self, tx_id: str, error_message: Optional[str]):
        self.tx_id = tx_id
        self.error_message = error_message
        super().__init__(f"transaction {tx_id} failed: {error_message}")


class DeploymentFailedError(DeploymentError):
    """Raised by DeploymentReport.raise_for_failures() when any contract failed."""

    def __init__(self, failures: List[str]):
        self.failures = failures
        super().__init__("failed to deploy all contracts: " + "; ".join(failures))
