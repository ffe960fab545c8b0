"""
Contract client for a deployed Diamond proxy.
Reads and writes the on-chain selector table and executes facet calls via Web3.
"""

from typing import Any, Dict, Iterable, List, Optional

from web3 import Web3
from web3.contract import Contract

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import BlockchainError, TransactionFailedError
from diamond_registry.core.logging import get_logger, log_blockchain_transaction
from diamond_registry.domain.models.route import ZERO_ADDRESS, normalize_address
from diamond_registry.infrastructure.blockchain.selectors import (
    SelectorLike,
    normalize_selector,
)

logger = get_logger(__name__)

# Diamond ABI for the routing table functions
DIAMOND_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {"name": "_facetAddress", "type": "address"},
            {"name": "_selectors", "type": "bytes4[]"},
        ],
        "name": "addFacet",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "_facetAddress", "type": "address"},
            {"name": "_selectors", "type": "bytes4[]"},
        ],
        "name": "updateFacet",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "", "type": "bytes4"}],
        "name": "selectorToFacet",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def _connect(rpc_url: Optional[str] = None) -> Web3:
    rpc_url = rpc_url or settings.ACTIVE_RPC_URL
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    logger.info(f"Connecting to RPC: {rpc_url}")

    if not w3.is_connected():
        logger.error("Failed to connect to Web3 provider")
        raise ConnectionError("Cannot connect to blockchain RPC")
    return w3


def _selector_bytes(selector: SelectorLike) -> bytes:
    return bytes.fromhex(normalize_selector(selector)[2:])


class DiamondContractClient:
    """Registration target backed by the Diamond deployed on chain."""

    def __init__(self, diamond_address: str, w3: Optional[Web3] = None):
        """
        Initialize contract client.

        Args:
            diamond_address: Diamond proxy address
            w3: Connected Web3 instance (connects to ACTIVE_RPC_URL if None)
        """
        self.diamond_address = Web3.to_checksum_address(diamond_address)
        self.w3 = w3 or _connect()
        self.contract: Contract = self.w3.eth.contract(
            address=self.diamond_address, abi=DIAMOND_ABI
        )

        logger.info(f"Diamond client initialized for {self.diamond_address}")

    def resolve(self, selector: SelectorLike) -> Optional[str]:
        """Read ``selectorToFacet``; the zero address means unregistered."""
        facet = self.contract.functions.selectorToFacet(_selector_bytes(selector)).call()
        if not facet or facet == ZERO_ADDRESS:
            return None
        return Web3.to_checksum_address(facet)

    def register(
        self, selectors: Iterable[SelectorLike], facet_address: str, caller: Optional[str] = None
    ) -> List[str]:
        batch = [normalize_selector(s) for s in selectors]
        self.send_transaction(
            "addFacet", [normalize_address(facet_address), [_selector_bytes(s) for s in batch]]
        )
        return batch

    def replace_facet(
        self, selectors: Iterable[SelectorLike], new_facet_address: str, caller: Optional[str] = None
    ) -> List[str]:
        batch = [normalize_selector(s) for s in selectors]
        self.send_transaction(
            "updateFacet", [normalize_address(new_facet_address), [_selector_bytes(s) for s in batch]]
        )
        return batch

    def send_transaction(
        self,
        function_name: str,
        args: List[Any],
        gas_limit: Optional[int] = None,
    ) -> Dict:
        """
        Send a signed transaction to the Diamond.

        Args:
            function_name: Name of the contract function to call
            args: List of arguments for the function
            gas_limit: Gas limit for the transaction

        Returns:
            Transaction receipt

        Raises:
            BlockchainError: if no signing key is configured
            TransactionFailedError: if the transaction reverted
        """
        if not settings.DEPLOYER_PRIVATE_KEY:
            raise BlockchainError("DEPLOYER_PRIVATE_KEY not configured")

        contract_function = getattr(self.contract.functions, function_name)
        account = self.w3.eth.account.from_key(settings.DEPLOYER_PRIVATE_KEY)
        from_address = account.address

        logger.info(f"Sending transaction: {function_name} from {from_address}")

        nonce = self.w3.eth.get_transaction_count(from_address)

        # Estimate gas if not provided
        if not gas_limit:
            try:
                gas_limit = contract_function(*args).estimate_gas({"from": from_address})
                # Add 20% buffer
                gas_limit = int(gas_limit * 1.2)
            except Exception as e:
                logger.warning(f"Gas estimation failed: {e}, using default")
                gas_limit = 500000

        transaction = contract_function(*args).build_transaction(
            {
                "from": from_address,
                "nonce": nonce,
                "gas": gas_limit,
                "gasPrice": self.w3.eth.gas_price,
            }
        )

        signed_txn = self.w3.eth.account.sign_transaction(
            transaction, settings.DEPLOYER_PRIVATE_KEY
        )
        tx_hash = self.w3.eth.send_raw_transaction(signed_txn.raw_transaction)
        tx_receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=120)

        tx_hash_hex = "0x" + tx_receipt["transactionHash"].hex().removeprefix("0x")
        if tx_receipt.get("status") != 1:
            raise TransactionFailedError(tx_hash_hex, {"method": function_name})

        log_blockchain_transaction(
            tx_hash=tx_hash_hex,
            chain_id=settings.EVM_CHAIN_ID,
            contract_address=self.diamond_address,
            method=function_name,
            block_number=tx_receipt.get("blockNumber"),
        )
        return dict(tx_receipt)


class ChainFacetExecutor:
    """Dispatcher executor that runs a facet call with ``eth_call``."""

    def __init__(self, w3: Optional[Web3] = None):
        self._w3 = w3

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            self._w3 = _connect()
        return self._w3

    def __call__(self, facet_address: str, calldata: bytes) -> bytes:
        return bytes(self.w3.eth.call({"to": facet_address, "data": calldata}))
