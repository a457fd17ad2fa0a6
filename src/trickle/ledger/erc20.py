"""ERC-20 ledger reached over JSON-RPC with web3."""

import logging
import time

from web3 import Web3
from web3.types import TxReceipt

from trickle.core.wallet import WalletProvider
from trickle.observability.metrics import TRANSACTION_DURATION

from .base import TokenLedger, TransferUnconfirmed

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
        "stateMutability": "view",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
        "stateMutability": "view",
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
        "stateMutability": "view",
    },
    {
        "constant": False,
        "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint256"}],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
        "stateMutability": "nonpayable",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "name": "transferFrom",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
        "stateMutability": "nonpayable",
    },
]

# Gas limit for ERC-20 transfer/transferFrom calls
TRANSFER_GAS = 100000


class Erc20Ledger(TokenLedger):
    """ERC-20 token whose custody account is the operator wallet.

    Parameters
    ----------
    w3 : Web3
        Web3 instance connected to the target chain.
    token_address : str
        Address of the ERC-20 contract.
    wallet : WalletProvider
        Operator wallet; its address is the custody account.
    receipt_timeout : int
        Seconds to wait for each transaction to be mined.
    """

    def __init__(
        self,
        w3: Web3,
        token_address: str,
        wallet: WalletProvider,
        receipt_timeout: int = 120,
    ):
        self._w3 = w3
        self._wallet = wallet
        self._address = Web3.to_checksum_address(token_address)
        self._contract = w3.eth.contract(address=self._address, abi=ERC20_ABI)
        self._receipt_timeout = receipt_timeout
        self._decimals: int | None = None

    @classmethod
    def from_rpc(
        cls, rpc_endpoint: str, token_address: str, wallet: WalletProvider
    ) -> "Erc20Ledger":
        """Connect to ``rpc_endpoint`` over HTTP."""
        return cls(Web3(Web3.HTTPProvider(rpc_endpoint)), token_address, wallet)

    def at(self, token_address: str) -> "Erc20Ledger":
        """Ledger for another token, same chain and same custody wallet."""
        return Erc20Ledger(self._w3, token_address, self._wallet, self._receipt_timeout)

    @property
    def connected(self) -> bool:
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        return self._w3.eth.chain_id

    @property
    def address(self) -> str:
        return self._address

    @property
    def holder(self) -> str:
        return self._wallet.address

    @property
    def decimals(self) -> int:
        if self._decimals is None:
            self._decimals = int(self._contract.functions.decimals().call())
        return self._decimals

    def balance_of(self, address: str) -> int:
        return int(self._contract.functions.balanceOf(Web3.to_checksum_address(address)).call())

    def transfer(self, to: str, amount: int) -> bool:
        call = self._contract.functions.transfer(Web3.to_checksum_address(to), amount)
        return self._submit("transfer", call, to=to, amount=amount)

    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        call = self._contract.functions.transferFrom(
            Web3.to_checksum_address(owner), Web3.to_checksum_address(to), amount
        )
        return self._submit("transfer_from", call, to=to, amount=amount, owner=owner)

    def _submit(self, operation: str, call, **fields) -> bool:
        """Sign, send and wait for a contract call.

        Returns
        -------
        bool
            True once mined, False if the call was not sent or reverted.

        Raises
        ------
        TransferUnconfirmed
            If the transaction was sent but no receipt arrived.
        """
        sender = self._wallet.address
        started = time.monotonic()
        try:
            try:
                tx = call.build_transaction(
                    {
                        "from": sender,
                        "gas": TRANSFER_GAS,
                        "gasPrice": self._w3.eth.gas_price,
                        # Count pending transactions so an unconfirmed one is not replaced
                        "nonce": self._w3.eth.get_transaction_count(sender, "pending"),
                        "chainId": self._w3.eth.chain_id,
                    }
                )
                signed = self._wallet.get_account().sign_transaction(tx)
                tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            except Exception as e:
                logger.error(
                    "ERC-20 %s not sent",
                    operation,
                    extra={"token": self._address, "error": str(e), **_stringify(fields)},
                    exc_info=True,
                )
                return False

            try:
                receipt = self.wait_for_receipt(tx_hash)
            except Exception as e:
                logger.error(
                    "ERC-20 %s sent but unconfirmed",
                    operation,
                    extra={
                        "token": self._address,
                        "tx_hash": tx_hash.hex(),
                        "error": str(e),
                        **_stringify(fields),
                    },
                )
                raise TransferUnconfirmed(tx_hash.hex(), str(e)) from e
        finally:
            TRANSACTION_DURATION.labels(operation=operation).observe(time.monotonic() - started)

        ok = receipt["status"] == 1
        log = logger.info if ok else logger.error
        log(
            "ERC-20 %s %s",
            operation,
            "mined" if ok else "reverted",
            extra={"token": self._address, "tx_hash": tx_hash.hex(), **_stringify(fields)},
        )
        return ok

    def wait_for_receipt(self, tx_hash) -> TxReceipt:
        """Wait for a transaction receipt.

        Raises
        ------
        web3.exceptions.TimeExhausted
            If the transaction is not mined within the timeout.
        """
        return self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._receipt_timeout)


def _stringify(fields: dict) -> dict:
    return {key: str(value) for key, value in fields.items()}
