"""Wallet and chain boundary for SOL donations.

The browser wallet signs; the chain connection fetches blockhashes, relays
signed transactions and waits for confirmation. Both sit behind small
interfaces so the donation flow can run against any implementation.
"""
import asyncio
import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from coverwise.config.logging_config import get_logger

logger = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
COMMITMENT = "confirmed"

CLUSTER_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}


class ChainError(Exception):
    """The chain rejected a request or the transaction did not confirm."""
    pass


@dataclass(frozen=True)
class TransferInstruction:
    """System-program transfer of ``lamports`` between two accounts."""
    from_pubkey: str
    to_pubkey: str
    lamports: int


@dataclass(frozen=True)
class LatestBlockhash:
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class UnsignedTransfer:
    """Transaction ready for the wallet to sign."""
    instruction: TransferInstruction
    fee_payer: str
    recent_blockhash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feePayer": self.fee_payer,
            "recentBlockhash": self.recent_blockhash,
            "instructions": [{
                "program": "system",
                "type": "transfer",
                "fromPubkey": self.instruction.from_pubkey,
                "toPubkey": self.instruction.to_pubkey,
                "lamports": self.instruction.lamports,
            }],
        }


class WalletProvider(ABC):
    """
    User wallet able to sign transfers.

    Implementations provide ``sign_transaction`` and may also provide a
    combined ``sign_and_send_transaction``; set ``supports_sign_and_send``
    when they do.
    """

    supports_sign_and_send: bool = False

    @abstractmethod
    async def connect(self) -> str:
        """Connect and return the wallet's public key."""
        pass

    @abstractmethod
    async def sign_transaction(self, transaction: UnsignedTransfer) -> bytes:
        """Return the serialized signed transaction."""
        pass

    async def sign_and_send_transaction(self, transaction: UnsignedTransfer) -> str:
        """Sign, submit, and return the signature."""
        raise NotImplementedError(f"{type(self).__name__} cannot send transactions itself")


class ChainConnection(ABC):
    """RPC access to a cluster."""

    @abstractmethod
    async def get_latest_blockhash(self) -> LatestBlockhash:
        pass

    @abstractmethod
    async def send_raw_transaction(self, signed_transaction: bytes) -> str:
        """Submit a signed transaction and return its signature."""
        pass

    @abstractmethod
    async def confirm_transaction(self, signature: str, blockhash: LatestBlockhash) -> None:
        """
        Wait until ``signature`` is confirmed.

        Raises:
            ChainError: If the transaction failed or its blockhash expired
        """
        pass


class SolanaRpcConnection(ChainConnection):
    """JSON-RPC connection to a public Solana cluster."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cluster: str = "devnet",
        rpc_url: Optional[str] = None,
        poll_interval_seconds: float = 1.0,
        max_polls: int = 60,
    ):
        if rpc_url is None and cluster not in CLUSTER_URLS:
            raise ValueError(f"Unknown Solana cluster: {cluster}")
        self._http_client = http_client
        self.cluster = cluster
        self.rpc_url = rpc_url or CLUSTER_URLS[cluster]
        self._poll_interval = poll_interval_seconds
        self._max_polls = max_polls
        self._request_id = 0

    async def _rpc(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        try:
            response = await self._http_client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Solana RPC call failed", method=method, error=str(e))
            raise ChainError(f"{method} failed: {e}") from e

        if not isinstance(body, dict):
            logger.error("Solana RPC returned a non-object body", method=method)
            raise ChainError(f"{method} failed: unexpected response")
        error = body.get("error")
        if error:
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            logger.error("Solana RPC returned an error", method=method, error=message)
            raise ChainError(f"{method} failed: {message}")
        return body.get("result")

    async def get_latest_blockhash(self) -> LatestBlockhash:
        result = await self._rpc("getLatestBlockhash", [{"commitment": COMMITMENT}])
        try:
            value = result["value"]
            return LatestBlockhash(
                blockhash=value["blockhash"],
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ChainError(f"getLatestBlockhash returned an unexpected result: {result!r}") from e

    async def send_raw_transaction(self, signed_transaction: bytes) -> str:
        encoded = base64.b64encode(signed_transaction).decode("ascii")
        return await self._rpc(
            "sendTransaction",
            [encoded, {"encoding": "base64", "skipPreflight": False, "preflightCommitment": COMMITMENT}],
        )

    async def confirm_transaction(self, signature: str, blockhash: LatestBlockhash) -> None:
        for _ in range(self._max_polls):
            result = await self._rpc("getSignatureStatuses", [[signature]])
            statuses = result.get("value") if isinstance(result, dict) else None
            status = statuses[0] if isinstance(statuses, list) and statuses else None
            if status is not None and not isinstance(status, dict):
                raise ChainError(f"Unexpected signature status for {signature}: {status!r}")
            if status is not None:
                if status.get("err"):
                    raise ChainError(f"Transaction {signature} failed: {status['err']}")
                if status.get("confirmationStatus") in ("confirmed", "finalized"):
                    logger.info("Transaction confirmed", signature=signature)
                    return

            height = await self._rpc("getBlockHeight", [{"commitment": COMMITMENT}])
            if not isinstance(height, int):
                raise ChainError(f"getBlockHeight returned an unexpected result: {height!r}")
            if height > blockhash.last_valid_block_height:
                raise ChainError(f"Transaction {signature} expired before confirmation")
            await asyncio.sleep(self._poll_interval)

        raise ChainError(f"Transaction {signature} was not confirmed in time")
