"""Sequential deployment of a planned contract set."""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional

from .config import AccountConfig
from .exceptions import (
    AccountNotFoundError,
    ContractExistsError,
    DeploymentError,
    GatewayError,
    TransactionFailedError,
    UpdateWithArgumentsError,
)
from .gateway import Gateway
from .transactions import (
    ContractTemplates,
    Signer,
    SigningMode,
    Transaction,
    TransactionTemplates,
    sign_transaction,
)
from .types import ContractUnit, DeploymentOutcome, DeploymentReport, OutcomeStatus

logger = logging.getLogger(__name__)

SignerProvider = Callable[[AccountConfig, int], Signer]


class Action(Enum):
    ADD = "add"
    UPDATE = "update"
    SKIP = "skip"


class Step(Enum):
    """Progress of one contract through the deployment protocol."""

    PENDING = "pending"
    BLOCK_FETCHED = "block-fetched"
    ACCOUNT_FETCHED = "account-fetched"
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    SETTLED = "settled"


def choose_action(
    name: str, existing_code: Optional[bytes], code: str, update: bool, has_args: bool
) -> Action:
    """
    Decide what to do with a contract given what is deployed on its account.

    Raises:
        ContractExistsError: If deployed and update was not requested
        UpdateWithArgumentsError: If deployed and initialization arguments are given
    """
    if existing_code is None:
        return Action.ADD
    if not update:
        raise ContractExistsError(
            f"contract {name} is already deployed to this account. "
            "Use the update option to force update"
        )
    if has_args:
        raise UpdateWithArgumentsError(
            f"contract {name} is already deployed and can not be updated with initialization arguments"
        )
    if existing_code == code.encode():
        return Action.SKIP
    return Action.UPDATE


class DeploymentExecutor:
    """Walks a deployment plan, one contract at a time."""

    def __init__(
        self,
        gateway: Gateway,
        accounts: Mapping[str, AccountConfig],
        signer_provider: SignerProvider,
        templates: Optional[TransactionTemplates] = None,
        payer: Optional[AccountConfig] = None,
    ):
        """
        Initialize the executor.

        Args:
            gateway: Network access
            accounts: Configured accounts by name
            signer_provider: Returns a signer for (account, key index)
            templates: Transaction builder (defaults to ContractTemplates)
            payer: Account paying fees (defaults to each contract's target account)
        """
        self.gateway = gateway
        self.accounts = accounts
        self.signer_provider = signer_provider
        self.templates = templates or ContractTemplates()
        self.payer = payer

    def execute(
        self, units: Iterable[ContractUnit], network: str, update: bool = False
    ) -> DeploymentReport:
        """
        Deploy contracts in the given order.

        A failing contract is recorded and the run continues with the next one.

        Args:
            units: Resolved contracts in deployment order
            network: Network name, for the report
            update: Whether already deployed contracts may be updated

        Returns:
            DeploymentReport with one outcome per contract, in order

        Raises:
            ValueError: If a contract has not been resolved
        """
        units = list(units)
        unresolved = [unit.name for unit in units if not unit.resolved]
        if unresolved:
            raise ValueError(f"contracts not resolved: {', '.join(unresolved)}")

        outcomes: List[DeploymentOutcome] = []
        for unit in units:
            outcomes.append(self.deploy_contract(unit, update))
        report = DeploymentReport(network=network, outcomes=outcomes)

        if report.success:
            if report.num_updates:
                logger.info("%d contracts updated successfully", report.num_updates)
            logger.info("All contracts deployed successfully")
        else:
            logger.error(
                "failed to deploy all contracts: %d of %d failed",
                report.num_failed,
                len(report.outcomes),
            )
        return report

    def _outcome(self, unit: ContractUnit, status: OutcomeStatus, **kwargs) -> DeploymentOutcome:
        return DeploymentOutcome(
            contract_name=unit.name,
            account_name=unit.account_name,
            address=unit.account_address,
            status=status,
            **kwargs,
        )

    def _account(self, name: str) -> AccountConfig:
        if name not in self.accounts:
            raise AccountNotFoundError(
                "target account for deploying contract not found in configuration"
            )
        return self.accounts[name]

    def _sign(self, tx: Transaction, account: AccountConfig) -> None:
        mode = sign_transaction(
            tx, account.address, account.key.index, self.signer_provider(account, account.key.index)
        )
        if mode is SigningMode.PAYLOAD and self.payer is not None:
            payer = self.payer
            sign_transaction(
                tx, payer.address, payer.key.index, self.signer_provider(payer, payer.key.index)
            )

    def deploy_contract(self, unit: ContractUnit, update: bool = False) -> DeploymentOutcome:
        """
        Run the fetch, diff, build, sign, submit and await sequence for one contract.

        Never raises: every failure, including unexpected errors from the
        gateway, templates or signer, becomes a FAILED outcome.
        """
        step = Step.PENDING
        action = Action.ADD
        tx_id: Optional[str] = None
        try:
            block = self.gateway.latest_block()
            step = Step.BLOCK_FETCHED

            account = self._account(unit.account_name)
            state = self.gateway.account(unit.account_address)
            step = Step.ACCOUNT_FETCHED

            action = choose_action(
                unit.name, state.contracts.get(unit.name), unit.code, update, bool(unit.args)
            )
            if action is Action.SKIP:
                logger.info("no diff found in %s, skipping update", unit.name)
                return self._outcome(
                    unit, OutcomeStatus.SKIPPED_NO_DIFF, reason="deployed code is identical"
                )

            if action is Action.UPDATE:
                tx = self.templates.update_contract(unit.account_address, unit.name, unit.code)
            else:
                tx = self.templates.add_contract(
                    unit.account_address, unit.name, unit.code, unit.args
                )
            payer = self.payer or account
            tx.set_block_reference(block)
            tx.set_proposer(state, account.key.index)
            tx.set_payer(payer.address)
            step = Step.BUILT

            self._sign(tx, account)
            step = Step.SIGNED

            logger.info("%s deploying...", unit.name)
            tx_id = self.gateway.submit(tx)
            step = Step.SUBMITTED

            result = self.gateway.await_result(tx_id)
            if result is None:
                raise GatewayError("could not fetch the result of deployment")
            step = Step.SETTLED
            if result.error:
                raise TransactionFailedError(tx_id, result.error_message)

        except Exception as e:  # Gateway and templates are caller-supplied
            reason = str(e) if isinstance(e, DeploymentError) else f"{type(e).__name__}: {e}"
            verb = "updating" if action is Action.UPDATE else "deploying"
            logger.error(
                "Error %s %s (after %s): %s",
                verb,
                unit.name,
                step.value,
                reason,
                exc_info=not isinstance(e, DeploymentError),
            )
            return self._outcome(unit, OutcomeStatus.FAILED, tx_id=tx_id, reason=reason)

        if action is Action.UPDATE:
            logger.info("%s -> %s (%s) (update)", unit.name, unit.account_address, tx_id)
            return self._outcome(unit, OutcomeStatus.UPDATED, tx_id=tx_id)

        logger.info("%s -> %s (%s)", unit.name, unit.account_address, tx_id)
        return self._outcome(unit, OutcomeStatus.DEPLOYED, tx_id=tx_id)
