"""Unit tests for the REST access node gateway."""

import base64
import json

import pytest
import responses
from responses import matchers

from flow_deployments.exceptions import AccountNotFoundError, GatewayError
from flow_deployments.gateway import HttpGateway, transaction_to_json
from flow_deployments.transactions import ContractTemplates, sign_transaction
from flow_deployments.types import AccountKeyState, AccountState, BlockRef

HOST = "http://access.example.com"
ALICE = "0x01cf0e2f2f715450"


class StaticSigner:
    def sign(self, message: bytes) -> bytes:
        return b"\x01\x02"


def _signed_transaction():
    tx = ContractTemplates().add_contract(ALICE, "A", "pub contract A {}")
    tx.set_block_reference(BlockRef(id="7bc42fe85d32ca51" * 4, height=1))
    tx.set_proposer(AccountState(address=ALICE, keys=[AccountKeyState(0, 5)]), 0)
    tx.set_payer(ALICE)
    sign_transaction(tx, ALICE, 0, StaticSigner())
    return tx


@pytest.fixture
def gateway() -> HttpGateway:
    return HttpGateway(HOST, await_timeout=5, poll_interval=0)


class TestTransactionToJson:
    """Test the transaction_to_json function."""

    def test_encoding(self):
        """Test the REST encoding of a signed transaction."""
        body = transaction_to_json(_signed_transaction())

        assert base64.b64decode(body["script"]).decode().strip().startswith("transaction(")
        assert json.loads(base64.b64decode(body["arguments"][0])) == {"type": "String", "value": "A"}
        assert body["payer"] == "01cf0e2f2f715450"
        assert body["authorizers"] == ["01cf0e2f2f715450"]
        assert body["proposal_key"] == {
            "address": "01cf0e2f2f715450",
            "key_index": "0",
            "sequence_number": "5",
        }
        assert body["gas_limit"] == "1000"
        assert body["payload_signatures"] == []
        assert body["envelope_signatures"] == [
            {"address": "01cf0e2f2f715450", "key_index": "0", "signature": "AQI="}
        ]

    def test_incomplete_transaction(self):
        """Test that a transaction without roles cannot be encoded."""
        tx = ContractTemplates().add_contract(ALICE, "A", "code")

        with pytest.raises(ValueError):
            transaction_to_json(tx)


class TestLatestBlock:
    """Test HttpGateway.latest_block."""

    @responses.activate
    def test_latest_sealed_block(self, gateway):
        """Test fetching the latest sealed block header."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/blocks",
            json=[{"header": {"id": "abc", "height": "42"}}],
            status=200,
            match=[matchers.query_param_matcher({"height": "sealed"})],
        )

        assert gateway.latest_block() == BlockRef(id="abc", height=42)

    @responses.activate
    def test_server_error(self, gateway):
        """Test that a non-200 response raises GatewayError."""
        responses.add(responses.GET, f"{HOST}/v1/blocks", body="oops", status=500)

        with pytest.raises(GatewayError):
            gateway.latest_block()

    @responses.activate
    def test_unexpected_body(self, gateway):
        """Test that a malformed response raises GatewayError."""
        responses.add(responses.GET, f"{HOST}/v1/blocks", json=[], status=200)

        with pytest.raises(GatewayError):
            gateway.latest_block()

    @responses.activate
    def test_object_body(self, gateway):
        """Test that a JSON object where a list is expected raises GatewayError."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/blocks",
            json={"header": {"id": "abc", "height": "42"}},
            status=200,
        )

        with pytest.raises(GatewayError) as exc_info:
            gateway.latest_block()

        assert "unexpected JSON" in str(exc_info.value)

    @responses.activate
    def test_connection_error(self, gateway):
        """Test that transport errors raise GatewayError."""
        # No responses registered - the request fails to connect
        with pytest.raises(GatewayError):
            gateway.latest_block()


class TestAccount:
    """Test HttpGateway.account."""

    @responses.activate
    def test_account_with_contracts(self, gateway):
        """Test parsing keys and deployed contract code."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/accounts/01cf0e2f2f715450",
            json={
                "address": "01cf0e2f2f715450",
                "keys": [
                    {"index": "0", "sequence_number": "3", "revoked": False},
                    {"index": "1", "sequence_number": "0", "revoked": True},
                ],
                "contracts": {"A": base64.b64encode(b"pub contract A {}").decode()},
            },
            status=200,
            match=[matchers.query_param_matcher({"expand": "contracts,keys"})],
        )

        state = gateway.account(ALICE)

        assert state.address == ALICE
        assert state.keys == [AccountKeyState(0, 3, False), AccountKeyState(1, 0, True)]
        assert state.contracts == {"A": b"pub contract A {}"}

    @responses.activate
    def test_account_without_contracts(self, gateway):
        """Test that an account with no contracts has an empty mapping."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/accounts/01cf0e2f2f715450",
            json={"address": "01cf0e2f2f715450", "keys": []},
            status=200,
        )

        assert gateway.account(ALICE).contracts == {}

    @responses.activate
    def test_missing_account(self, gateway):
        """Test that a 404 raises AccountNotFoundError."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/accounts/01cf0e2f2f715450",
            json={"code": 404, "message": "not found"},
            status=404,
        )

        with pytest.raises(AccountNotFoundError):
            gateway.account(ALICE)

    @responses.activate
    def test_list_body(self, gateway):
        """Test that a JSON list where an object is expected raises GatewayError."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/accounts/01cf0e2f2f715450",
            json=[{"address": "01cf0e2f2f715450"}],
            status=200,
        )

        with pytest.raises(GatewayError) as exc_info:
            gateway.account(ALICE)

        assert "unexpected JSON" in str(exc_info.value)


class TestSubmit:
    """Test HttpGateway.submit."""

    @responses.activate
    def test_submit_returns_id(self, gateway):
        """Test that the REST body is posted and the id returned."""
        tx = _signed_transaction()
        responses.add(
            responses.POST,
            f"{HOST}/v1/transactions",
            json={"id": "tx-123"},
            status=200,
            match=[matchers.json_params_matcher(transaction_to_json(tx))],
        )

        assert gateway.submit(tx) == "tx-123"

    @responses.activate
    def test_rejected_request(self, gateway):
        """Test that a rejected submission raises GatewayError."""
        responses.add(
            responses.POST,
            f"{HOST}/v1/transactions",
            json={"code": 400, "message": "invalid signature"},
            status=400,
        )

        with pytest.raises(GatewayError) as exc_info:
            gateway.submit(_signed_transaction())

        assert "invalid signature" in str(exc_info.value)

    @responses.activate
    def test_list_body(self, gateway):
        """Test that a successful response without an id object raises GatewayError."""
        responses.add(responses.POST, f"{HOST}/v1/transactions", json=["tx-123"], status=200)

        with pytest.raises(GatewayError):
            gateway.submit(_signed_transaction())


class TestAwaitResult:
    """Test HttpGateway.await_result."""

    @responses.activate
    def test_polls_until_sealed(self, gateway):
        """Test that pending results are polled until sealed."""
        url = f"{HOST}/v1/transaction_results/tx-1"
        responses.add(responses.GET, url, json={"status": "Pending"}, status=200)
        responses.add(responses.GET, url, json={"status": "Executed"}, status=200)
        responses.add(responses.GET, url, json={"status": "Sealed", "error_message": ""}, status=200)

        result = gateway.await_result("tx-1")

        assert result.status == "Sealed"
        assert not result.error
        assert len(responses.calls) == 3

    @responses.activate
    def test_execution_error(self, gateway):
        """Test that a sealed transaction with an error carries the message."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/transaction_results/tx-1",
            json={"status": "Sealed", "error_message": "cannot overwrite existing contract"},
            status=200,
        )

        result = gateway.await_result("tx-1")

        assert result.error
        assert result.error_message == "cannot overwrite existing contract"

    @responses.activate
    def test_expired(self, gateway):
        """Test that an expired transaction is reported as an error."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/transaction_results/tx-1",
            json={"status": "Expired", "error_message": ""},
            status=200,
        )

        result = gateway.await_result("tx-1")

        assert result.error_message == "transaction expired"

    @responses.activate
    def test_timeout(self):
        """Test that polling gives up after await_timeout."""
        gateway = HttpGateway(HOST, await_timeout=0, poll_interval=0)
        responses.add(
            responses.GET,
            f"{HOST}/v1/transaction_results/tx-1",
            json={"status": "Pending"},
            status=200,
        )

        with pytest.raises(GatewayError) as exc_info:
            gateway.await_result("tx-1")

        assert "timed out" in str(exc_info.value)

    @responses.activate
    def test_list_body(self, gateway):
        """Test that a JSON list result raises GatewayError instead of polling."""
        responses.add(
            responses.GET,
            f"{HOST}/v1/transaction_results/tx-1",
            json=[{"status": "Sealed"}],
            status=200,
        )

        with pytest.raises(GatewayError):
            gateway.await_result("tx-1")

    def test_host_trailing_slash(self):
        """Test that a trailing slash on the host is ignored."""
        assert HttpGateway(HOST + "/").host == HOST
