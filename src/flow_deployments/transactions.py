"""Contract deployment transactions and their signing rules."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

import rlp

from .addresses import addresses_equal, normalize_address
from .constants import DEFAULT_GAS_LIMIT, TRANSACTION_DOMAIN_TAG
from .exceptions import SigningError
from .types import AccountState, BlockRef, ContractArgument

ADD_CONTRACT_TEMPLATE = """
transaction(name: String, code: String{params}) {{
    prepare(signer: AuthAccount) {{
        signer.contracts.add(name: name, code: code.decodeHex(){args})
    }}
}}
"""

UPDATE_CONTRACT_TEMPLATE = """
transaction(name: String, code: String) {
    prepare(signer: AuthAccount) {
        signer.contracts.update__experimental(name: name, code: code.decodeHex())
    }
}
"""

BLOCK_ID_LENGTH = 32  # bytes


class SigningMode(Enum):
    """
    Which transaction section a signer signs.

    ENVELOPE: the signer pays, so it signs payload plus payload signatures.
    PAYLOAD: someone else pays and signs the envelope afterwards.
    """

    ENVELOPE = "envelope"
    PAYLOAD = "payload"


def signing_mode(signer_address: str, payer_address: Optional[str]) -> SigningMode:
    """
    Decide which section an account signs.

    Only exact address equality counts; key weights are not considered.
    """
    if payer_address is not None and addresses_equal(signer_address, payer_address):
        return SigningMode.ENVELOPE
    return SigningMode.PAYLOAD


class Signer(Protocol):
    """Signs arbitrary bytes with one account key."""

    def sign(self, message: bytes) -> bytes: ...


@dataclass(frozen=True)
class ProposalKey:
    address: str
    key_index: int
    sequence_number: int


@dataclass(frozen=True)
class TransactionSignature:
    address: str
    key_index: int
    signature: bytes


def encode_argument(argument: Dict[str, Any]) -> bytes:
    """JSON-Cadence bytes of one argument, exactly as signed and as sent."""
    return json.dumps(argument).encode()


def _address_bytes(address: str) -> bytes:
    return bytes.fromhex(normalize_address(address)[2:])


@dataclass
class Transaction:
    """An unsigned (or partially signed) transaction."""

    script: str
    arguments: List[Dict[str, Any]] = field(default_factory=list)  # JSON-Cadence values
    authorizers: List[str] = field(default_factory=list)
    reference_block_id: Optional[str] = None  # 32-byte block id, hex
    gas_limit: int = DEFAULT_GAS_LIMIT
    proposal_key: Optional[ProposalKey] = None
    payer: Optional[str] = None
    payload_signatures: List[TransactionSignature] = field(default_factory=list)
    envelope_signatures: List[TransactionSignature] = field(default_factory=list)

    def set_block_reference(self, block: BlockRef) -> "Transaction":
        """
        Reference a block; the transaction expires relative to it.

        Raises:
            ValueError: If the block id is not 32 hex-encoded bytes
        """
        try:
            raw = bytes.fromhex(block.id)
        except ValueError:
            raise ValueError(f"invalid block id: {block.id!r}") from None
        if len(raw) != BLOCK_ID_LENGTH:
            raise ValueError(f"invalid block id: {block.id!r}")

        self.reference_block_id = block.id
        return self

    def set_proposer(self, account: AccountState, key_index: int) -> "Transaction":
        """
        Anchor the transaction on an account key's current sequence number.

        Raises:
            SigningError: If the account has no usable key at key_index
        """
        try:
            key = account.key(key_index)
        except KeyError as e:
            raise SigningError(str(e.args[0])) from e
        if key.revoked:
            raise SigningError(f"key {key_index} of account {account.address} is revoked")

        self.proposal_key = ProposalKey(
            address=normalize_address(account.address),
            key_index=key.index,
            sequence_number=key.sequence_number,
        )
        return self

    def set_payer(self, address: str) -> "Transaction":
        self.payer = normalize_address(address)
        return self

    def signers(self) -> List[str]:
        """Unique signing accounts: proposer, then payer, then authorizers."""
        signers: List[str] = []
        candidates = [self.proposal_key.address if self.proposal_key else None, self.payer]
        for address in candidates + list(self.authorizers):
            if address is not None and normalize_address(address) not in signers:
                signers.append(normalize_address(address))
        return signers

    def signer_index(self, address: str) -> int:
        """
        Position of an account in signers().

        Raises:
            SigningError: If the account has no role in the transaction
        """
        try:
            return self.signers().index(normalize_address(address))
        except ValueError:
            raise SigningError(
                f"account {address} is not proposer, payer or authorizer of the transaction"
            ) from None

    def payload_form(self) -> List[Any]:
        """
        RLP structure covered by payload signatures.

        Raises:
            ValueError: If the proposal key, payer or reference block is missing
        """
        if self.proposal_key is None or self.payer is None or self.reference_block_id is None:
            raise ValueError("transaction needs proposal key, payer and reference block")

        return [
            self.script.encode(),
            [encode_argument(argument) for argument in self.arguments],
            bytes.fromhex(self.reference_block_id),
            self.gas_limit,
            _address_bytes(self.proposal_key.address),
            self.proposal_key.key_index,
            self.proposal_key.sequence_number,
            _address_bytes(self.payer),
            [_address_bytes(authorizer) for authorizer in self.authorizers],
        ]

    def envelope_form(self) -> List[Any]:
        """RLP structure covered by envelope signatures: payload plus payload signatures."""
        signatures = sorted(
            [self.signer_index(s.address), s.key_index, s.signature]
            for s in self.payload_signatures
        )
        return [self.payload_form(), signatures]

    def payload_message(self) -> bytes:
        """Domain-tagged bytes signed by non-paying signers."""
        return TRANSACTION_DOMAIN_TAG + rlp.encode(self.payload_form())

    def envelope_message(self) -> bytes:
        """Domain-tagged bytes signed by the payer."""
        return TRANSACTION_DOMAIN_TAG + rlp.encode(self.envelope_form())

    def add_signature(
        self, mode: SigningMode, address: str, key_index: int, signature: bytes
    ) -> None:
        entry = TransactionSignature(normalize_address(address), key_index, signature)
        match mode:
            case SigningMode.ENVELOPE:
                self.envelope_signatures.append(entry)
            case SigningMode.PAYLOAD:
                self.payload_signatures.append(entry)


def sign_transaction(
    tx: Transaction, address: str, key_index: int, signer: Signer
) -> SigningMode:
    """
    Sign a transaction as one account.

    The payer signs the envelope; every other account signs the payload.

    Args:
        tx: Transaction with payer and proposal key set
        address: Address of the signing account
        key_index: Key index of the signing account
        signer: Signing capability for that key

    Returns:
        The SigningMode used

    Raises:
        SigningError: If the account has no role in the transaction or the signer fails
    """
    tx.signer_index(address)
    mode = signing_mode(address, tx.payer)
    message = tx.envelope_message() if mode is SigningMode.ENVELOPE else tx.payload_message()

    try:
        signature = signer.sign(message)
    except Exception as e:  # Signer implementations are caller-supplied
        raise SigningError(f"failed to sign transaction: {e}") from e

    tx.add_signature(mode, address, key_index, signature)
    return mode


class TransactionTemplates(Protocol):
    """Builds unsigned contract deployment transactions."""

    def add_contract(
        self, address: str, name: str, code: str, args: Sequence[ContractArgument]
    ) -> Transaction: ...

    def update_contract(self, address: str, name: str, code: str) -> Transaction: ...


def _string(value: str) -> Dict[str, Any]:
    return {"type": "String", "value": value}


class ContractTemplates:
    """Default add/update contract transactions."""

    def add_contract(
        self, address: str, name: str, code: str, args: Sequence[ContractArgument] = ()
    ) -> Transaction:
        params = "".join(f", arg{i}: {arg.type}" for i, arg in enumerate(args))
        call_args = "".join(f", arg{i}" for i in range(len(args)))

        return Transaction(
            script=ADD_CONTRACT_TEMPLATE.format(params=params, args=call_args),
            arguments=[_string(name), _string(code.encode().hex())]
            + [arg.to_json() for arg in args],
            authorizers=[normalize_address(address)],
        )

    def update_contract(self, address: str, name: str, code: str) -> Transaction:
        return Transaction(
            script=UPDATE_CONTRACT_TEMPLATE,
            arguments=[_string(name), _string(code.encode().hex())],
            authorizers=[normalize_address(address)],
        )
