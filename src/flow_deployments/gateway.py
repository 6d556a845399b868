"""Access node gateway for flow-deployments library."""

import base64
import logging
import time
from typing import Any, Dict, Optional, Protocol

import requests

from .addresses import normalize_address
from .exceptions import AccountNotFoundError, GatewayError
from .transactions import Transaction, TransactionSignature, encode_argument
from .types import AccountKeyState, AccountState, BlockRef, TransactionResult

logger = logging.getLogger(__name__)

FINAL_STATUSES = ("Sealed", "Expired")


class Gateway(Protocol):
    """Network access used by the deployment executor."""

    def latest_block(self) -> BlockRef: ...

    def account(self, address: str) -> AccountState: ...

    def submit(self, transaction: Transaction) -> str: ...

    def await_result(self, tx_id: str) -> Optional[TransactionResult]: ...


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _rest_address(address: str) -> str:
    # REST API takes addresses without the 0x prefix
    return normalize_address(address)[2:]


def _signatures_json(signatures: list[TransactionSignature]) -> list[Dict[str, str]]:
    return [
        {
            "address": _rest_address(s.address),
            "key_index": str(s.key_index),
            "signature": _b64(s.signature),
        }
        for s in signatures
    ]


def transaction_to_json(tx: Transaction) -> Dict[str, Any]:
    """
    Encode a signed transaction as the REST API request body.

    Raises:
        ValueError: If the transaction has no proposal key, payer or block reference
    """
    if tx.proposal_key is None or tx.payer is None or tx.reference_block_id is None:
        raise ValueError("transaction needs proposal key, payer and reference block")

    return {
        "script": _b64(tx.script.encode()),
        "arguments": [_b64(encode_argument(arg)) for arg in tx.arguments],
        "reference_block_id": tx.reference_block_id,
        "gas_limit": str(tx.gas_limit),
        "payer": _rest_address(tx.payer),
        "proposal_key": {
            "address": _rest_address(tx.proposal_key.address),
            "key_index": str(tx.proposal_key.key_index),
            "sequence_number": str(tx.proposal_key.sequence_number),
        },
        "authorizers": [_rest_address(a) for a in tx.authorizers],
        "payload_signatures": _signatures_json(tx.payload_signatures),
        "envelope_signatures": _signatures_json(tx.envelope_signatures),
    }


class HttpGateway:
    """Gateway talking to an access node's REST API."""

    def __init__(
        self,
        host: str,
        timeout: float = 30,
        await_timeout: float = 120,
        poll_interval: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the gateway.

        Args:
            host: Base URL of the access node, e.g. "https://rest-testnet.onflow.org"
            timeout: Per-request timeout in seconds
            await_timeout: How long await_result() polls before giving up
            poll_interval: Seconds between result polls
            session: Optional requests session to reuse
        """
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.await_timeout = await_timeout
        self.poll_interval = poll_interval
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.host}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GatewayError(f"network error during {method} {path}: {e}") from e

    def _json(self, response: requests.Response, what: str, expected: type = dict) -> Any:
        if response.status_code != 200:
            raise GatewayError(
                f"{what} failed with status {response.status_code}: {response.text[:200]}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError(f"{what} returned invalid JSON") from e
        if not isinstance(data, expected):
            raise GatewayError(f"{what} returned unexpected JSON: {data!r:.200}")
        return data

    def latest_block(self) -> BlockRef:
        """
        Get the latest sealed block.

        Raises:
            GatewayError: On transport or protocol errors
        """
        response = self._request("GET", "/v1/blocks", params={"height": "sealed"})
        data = self._json(response, "get block", expected=list)
        try:
            header = data[0]["header"]
            return BlockRef(id=header["id"], height=int(header["height"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GatewayError(f"unexpected block response: {data!r}") from e

    def account(self, address: str) -> AccountState:
        """
        Get an account with its keys and deployed contracts.

        Raises:
            AccountNotFoundError: If the account does not exist on the network
            GatewayError: On transport or protocol errors
        """
        response = self._request(
            "GET", f"/v1/accounts/{_rest_address(address)}", params={"expand": "contracts,keys"}
        )
        if response.status_code == 404:
            raise AccountNotFoundError(f"account {normalize_address(address)} not found on network")
        data = self._json(response, "get account")

        try:
            keys = [
                AccountKeyState(
                    index=int(key["index"]),
                    sequence_number=int(key["sequence_number"]),
                    revoked=bool(key.get("revoked", False)),
                )
                for key in data.get("keys", [])
            ]
            contracts = {
                name: base64.b64decode(code) for name, code in (data.get("contracts") or {}).items()
            }
            account_address = normalize_address(data["address"])
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"unexpected account response for {address}") from e

        return AccountState(address=account_address, keys=keys, contracts=contracts)

    def submit(self, transaction: Transaction) -> str:
        """
        Submit a signed transaction.

        Returns:
            Transaction id

        Raises:
            GatewayError: If the node rejects the request
        """
        response = self._request("POST", "/v1/transactions", json=transaction_to_json(transaction))
        data = self._json(response, "send transaction")
        if "id" not in data:
            raise GatewayError(f"unexpected send transaction response: {data!r}")
        return data["id"]

    def await_result(self, tx_id: str) -> Optional[TransactionResult]:
        """
        Poll a transaction result until it is sealed or expired.

        Returns:
            TransactionResult, error_message set when execution failed

        Raises:
            GatewayError: On transport errors or when await_timeout elapses
        """
        deadline = time.monotonic() + self.await_timeout
        while True:
            data = self._json(
                self._request("GET", f"/v1/transaction_results/{tx_id}"), "get transaction result"
            )
            status = data.get("status")
            if status in FINAL_STATUSES:
                error_message = data.get("error_message") or None
                if status == "Expired" and error_message is None:
                    error_message = "transaction expired"
                return TransactionResult(tx_id=tx_id, status=status, error_message=error_message)

            if time.monotonic() >= deadline:
                raise GatewayError(
                    f"timed out waiting for transaction {tx_id} (last status: {status})"
                )
            time.sleep(self.poll_interval)
