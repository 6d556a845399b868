"""Data types and dataclasses for flow-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import DeploymentFailedError


@dataclass(frozen=True)
class ContractArgument:
    """Typed constructor argument, e.g. ContractArgument("String", "hello")."""

    type: str
    value: Any

    def to_json(self) -> Dict[str, Any]:
        """JSON-Cadence encoding of the argument."""
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class ContractUnit:
    """A contract scheduled for deployment to one account on one network."""

    # Required fields
    name: str  # Contract name, unique per account per network
    account_name: str  # Target account name from configuration
    account_address: str  # Normalized target address, e.g. "0xf8d6e0586b0a20c7"
    source: str  # Raw source text

    # Optional fields
    location: Optional[str] = None  # Source path as declared in configuration
    args: Tuple[ContractArgument, ...] = ()

    # Set once by the resolver
    code: Optional[str] = None  # Source with every import bound to an address
    dependencies: Tuple[str, ...] = ()  # Imported names deployed in the same run

    @property
    def resolved(self) -> bool:
        return self.code is not None


@dataclass(frozen=True)
class StandardContract:
    """A well-known contract already deployed on the canonical network."""

    name: str
    address: str
    info_link: str


@dataclass(frozen=True)
class BlockRef:
    """Reference to a sealed block."""

    id: str
    height: int


@dataclass(frozen=True)
class AccountKeyState:
    """On-chain state of one account key."""

    index: int
    sequence_number: int
    revoked: bool = False


@dataclass
class AccountState:
    """On-chain state of an account."""

    address: str
    keys: List[AccountKeyState] = field(default_factory=list)
    contracts: Dict[str, bytes] = field(default_factory=dict)  # name -> deployed code

    def key(self, index: int) -> AccountKeyState:
        """
        Get an account key by index.

        Raises:
            KeyError: If the account has no key with this index
        """
        for key in self.keys:
            if key.index == index:
                return key
        raise KeyError(f"account {self.address} has no key with index {index}")


@dataclass(frozen=True)
class TransactionResult:
    """Settlement result of a submitted transaction."""

    tx_id: str
    status: str  # e.g. "Sealed", "Expired"
    error_message: Optional[str] = None

    @property
    def error(self) -> bool:
        return bool(self.error_message)


class OutcomeStatus(Enum):
    """
    Per-contract deployment outcome.

    Value strings are what reports print.
    """

    DEPLOYED = "deployed"
    UPDATED = "updated"
    SKIPPED_NO_DIFF = "skipped-no-diff"
    FAILED = "failed"


class RunStatus(Enum):
    """Aggregate outcome of a deployment run."""

    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_SKIPS = "succeeded-with-skips"
    COMPLETED_WITH_FAILURES = "completed-with-failures"


@dataclass(frozen=True)
class DeploymentOutcome:
    """What happened to one contract during a run."""

    contract_name: str
    account_name: str
    address: str
    status: OutcomeStatus
    tx_id: Optional[str] = None
    reason: Optional[str] = None  # Failure cause or skip explanation

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED


@dataclass
class DeploymentReport:
    """Ordered outcomes of one deployment run."""

    network: str
    outcomes: List[DeploymentOutcome] = field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def num_deployed(self) -> int:
        return self._count(OutcomeStatus.DEPLOYED)

    @property
    def num_updates(self) -> int:
        return self._count(OutcomeStatus.UPDATED)

    @property
    def num_skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED_NO_DIFF)

    @property
    def num_failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def success(self) -> bool:
        return self.num_failed == 0

    @property
    def status(self) -> RunStatus:
        if not self.success:
            return RunStatus.COMPLETED_WITH_FAILURES
        if self.num_skipped:
            return RunStatus.SUCCEEDED_WITH_SKIPS
        return RunStatus.SUCCEEDED

    @property
    def contract_names(self) -> List[str]:
        return [outcome.contract_name for outcome in self.outcomes]

    def failures(self) -> List[DeploymentOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    def raise_for_failures(self) -> None:
        """
        Raise if any contract failed.

        Raises:
            DeploymentFailedError: Listing every failed contract and its cause
        """
        failures = self.failures()
        if failures:
            raise DeploymentFailedError(
                [f"{outcome.contract_name}: {outcome.reason}" for outcome in failures]
            )
