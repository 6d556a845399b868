"""
flow-deployments: Python library for deploying interdependent contracts to Flow accounts
"""

from importlib.metadata import PackageNotFoundError, version

from .config import ProjectConfig, load_config
from .exceptions import (
    AccountNotFoundError,
    ConfigNotFoundError,
    ConfigurationError,
    ContractConflictError,
    ContractExistsError,
    DependencyCycleError,
    DeploymentError,
    DeploymentFailedError,
    DuplicateContractError,
    GatewayError,
    NetworkNotFoundError,
    SigningError,
    TransactionFailedError,
    UnresolvedImportError,
    UpdateWithArgumentsError,
)
from .gateway import Gateway, HttpGateway
from .project import Project, deploy_project
from .transactions import ContractTemplates, Signer, SigningMode
from .types import (
    ContractArgument,
    ContractUnit,
    DeploymentOutcome,
    DeploymentReport,
    OutcomeStatus,
    RunStatus,
    StandardContract,
)

try:
    __version__ = version("flow-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Project",
    "deploy_project",
    "ProjectConfig",
    "load_config",
    "Gateway",
    "HttpGateway",
    "ContractTemplates",
    "Signer",
    "SigningMode",
    "ContractArgument",
    "ContractUnit",
    "DeploymentOutcome",
    "DeploymentReport",
    "OutcomeStatus",
    "RunStatus",
    "StandardContract",
    "DeploymentError",
    "ConfigurationError",
    "ConfigNotFoundError",
    "NetworkNotFoundError",
    "AccountNotFoundError",
    "UnresolvedImportError",
    "DependencyCycleError",
    "ContractConflictError",
    "DuplicateContractError",
    "ContractExistsError",
    "UpdateWithArgumentsError",
    "SigningError",
    "GatewayError",
    "TransactionFailedError",
    "DeploymentFailedError",
]
