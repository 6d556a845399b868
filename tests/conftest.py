"""Shared pytest fixtures for flow-deployments tests."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from flow_deployments.addresses import normalize_address
from flow_deployments.config import AccountConfig, KeyConfig, ProjectConfig, load_config
from flow_deployments.exceptions import AccountNotFoundError
from flow_deployments.transactions import Transaction
from flow_deployments.types import (
    AccountKeyState,
    AccountState,
    BlockRef,
    ContractUnit,
    TransactionResult,
)

ALICE = "0x01cf0e2f2f715450"
BOB = "0x179b6b1cb6755e31"
SERVICE = "0xf8d6e0586b0a20c7"


class FakeGateway:
    """In-memory chain: applies deployments on submit, records every call."""

    def __init__(self, addresses: Optional[List[str]] = None):
        self.accounts: Dict[str, AccountState] = {}
        for address in addresses or [ALICE, BOB, SERVICE]:
            self.add_account(address)
        self.calls: List[tuple] = []
        self.submitted: List[Transaction] = []
        self.height = 100
        # Contract name -> settlement error message
        self.rejections: Dict[str, str] = {}
        # Method name -> exception raised on every call
        self.errors: Dict[str, Exception] = {}
        # Contract name -> exception raised by submit()
        self.submit_errors: Dict[str, Exception] = {}
        self.missing_results: List[str] = []
        self._results: Dict[str, TransactionResult] = {}

    def add_account(self, address: str, key_indexes=(0, 1)) -> AccountState:
        address = normalize_address(address)
        state = AccountState(
            address=address,
            keys=[AccountKeyState(index=i, sequence_number=0) for i in key_indexes],
        )
        self.accounts[address] = state
        return state

    def deploy_code(self, address: str, name: str, code: str) -> None:
        self.accounts[normalize_address(address)].contracts[name] = code.encode()

    def _check(self, method: str) -> None:
        if method in self.errors:
            raise self.errors[method]

    def latest_block(self) -> BlockRef:
        self.calls.append(("latest_block",))
        self._check("latest_block")
        self.height += 1
        return BlockRef(id=f"{self.height:064x}", height=self.height)

    def account(self, address: str) -> AccountState:
        self.calls.append(("account", address))
        self._check("account")
        address = normalize_address(address)
        if address not in self.accounts:
            raise AccountNotFoundError(f"account {address} not found on network")
        state = self.accounts[address]
        return AccountState(
            address=state.address, keys=list(state.keys), contracts=dict(state.contracts)
        )

    def submit(self, transaction: Transaction) -> str:
        self.calls.append(("submit", transaction))
        self._check("submit")
        name = transaction.arguments[0]["value"]
        if name in self.submit_errors:
            raise self.submit_errors[name]

        self.submitted.append(transaction)
        tx_id = f"tx-{len(self.submitted)}"

        if name in self.missing_results:
            return tx_id

        if name in self.rejections:
            self._results[tx_id] = TransactionResult(tx_id, "Sealed", self.rejections[name])
            return tx_id

        code = bytes.fromhex(transaction.arguments[1]["value"])
        state = self.accounts[transaction.authorizers[0]]
        state.contracts[name] = code
        proposal = transaction.proposal_key
        state.keys = [
            AccountKeyState(k.index, k.sequence_number + 1, k.revoked)
            if k.index == proposal.key_index
            else k
            for k in state.keys
        ]
        self._results[tx_id] = TransactionResult(tx_id, "Sealed")
        return tx_id

    def await_result(self, tx_id: str) -> Optional[TransactionResult]:
        self.calls.append(("await_result", tx_id))
        self._check("await_result")
        return self._results.get(tx_id)

    def write_calls(self) -> List[tuple]:
        return [call for call in self.calls if call[0] == "submit"]


class RecordingSigner:
    """Signer returning a deterministic signature and remembering what it signed."""

    def __init__(self, account_name: str, fail: bool = False):
        self.account_name = account_name
        self.fail = fail
        self.messages: List[bytes] = []

    def sign(self, message: bytes) -> bytes:
        if self.fail:
            raise RuntimeError("key not available")
        self.messages.append(message)
        return f"sig-{self.account_name}-{len(self.messages)}".encode()


class SignerRegistry:
    """signer_provider callable handing out one RecordingSigner per account."""

    def __init__(self):
        self.signers: Dict[str, RecordingSigner] = {}
        self.failing: set = set()
        self.requests: List[tuple] = []

    def __call__(self, account: AccountConfig, key_index: int) -> RecordingSigner:
        self.requests.append((account.name, key_index))
        if account.name not in self.signers:
            self.signers[account.name] = RecordingSigner(
                account.name, fail=account.name in self.failing
            )
        return self.signers[account.name]


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def project_dir(fixtures_dir: Path, tmp_path: Path) -> Path:
    """Copy the sample project to a temporary directory."""
    target = tmp_path / "project"
    shutil.copytree(fixtures_dir / "project", target)
    return target


@pytest.fixture
def sample_config_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample flow.json fixture."""
    with open(fixtures_dir / "project" / "flow.json") as f:
        return json.load(f)


@pytest.fixture
def sample_config(project_dir: Path) -> ProjectConfig:
    """Sample project configuration loaded from disk."""
    return load_config(project_dir / "flow.json")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def signers() -> SignerRegistry:
    return SignerRegistry()


@pytest.fixture
def accounts() -> Dict[str, AccountConfig]:
    return {
        "alice": AccountConfig(name="alice", address=ALICE, key=KeyConfig(index=0)),
        "bob": AccountConfig(name="bob", address=BOB, key=KeyConfig(index=1)),
        "service": AccountConfig(name="service", address=SERVICE, key=KeyConfig(index=0)),
    }


def make_unit(
    name: str,
    account_name: str = "alice",
    address: str = ALICE,
    source: Optional[str] = None,
    imports: tuple = (),
    args: tuple = (),
) -> ContractUnit:
    """Build a contract unit whose source imports the given names by path."""
    if source is None:
        lines = [f'import {dep} from "./{dep}.cdc"' for dep in imports]
        lines.append(f"pub contract {name} {{}}")
        source = "\n".join(lines) + "\n"
    return ContractUnit(
        name=name,
        account_name=account_name,
        account_address=normalize_address(address),
        source=source,
        args=args,
    )


@pytest.fixture
def unit_factory():
    """Return the make_unit helper."""
    return make_unit
