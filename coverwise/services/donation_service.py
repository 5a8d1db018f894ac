"""SOL donations to the project wallet."""
import math
from typing import Optional, Union

import httpx

from coverwise.config.logging_config import get_logger
from coverwise.config.settings import Settings, get_settings
from coverwise.integrations.wallet import (
    LAMPORTS_PER_SOL,
    ChainConnection,
    ChainError,
    SolanaRpcConnection,
    TransferInstruction,
    UnsignedTransfer,
    WalletProvider,
)

logger = get_logger(__name__)

_PLACEHOLDER_MARKER = "paste_your"


class DonationError(Exception):
    """Donation could not be started or completed."""
    pass


def sol_to_lamports(sol_amount: Union[str, float, int, None]) -> int:
    """
    Convert a user-entered SOL amount to lamports.

    Raises:
        DonationError: If the amount is not a finite positive number
    """
    try:
        amount = float(sol_amount)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        raise DonationError("Enter a valid SOL amount.")
    if not math.isfinite(amount * LAMPORTS_PER_SOL):
        raise DonationError("Enter a valid SOL amount.")
    lamports = round(amount * LAMPORTS_PER_SOL)
    if lamports <= 0:
        raise DonationError("Enter a valid SOL amount.")
    return lamports


class DonationService:
    """Builds, signs and confirms a transfer to the configured donation wallet."""

    def __init__(
        self,
        wallet: WalletProvider,
        connection: ChainConnection,
        settings: Optional[Settings] = None,
    ):
        self.wallet = wallet
        self.connection = connection
        self._settings = settings or get_settings()

    def donation_address(self) -> str:
        address = (self._settings.donation_wallet or "").strip()
        if not address or _PLACEHOLDER_MARKER in address:
            raise DonationError("Missing DONATION_WALLET in .env")
        return address

    async def donate(self, sol_amount: Union[str, float, int, None]) -> str:
        """
        Send ``sol_amount`` SOL from the user's wallet.

        Returns:
            Confirmed transaction signature

        Raises:
            DonationError: On invalid input, missing configuration, or a
                chain failure
        """
        lamports = sol_to_lamports(sol_amount)
        to_pubkey = self.donation_address()

        from_pubkey = await self.wallet.connect()
        try:
            latest = await self.connection.get_latest_blockhash()
            transfer = UnsignedTransfer(
                instruction=TransferInstruction(
                    from_pubkey=from_pubkey,
                    to_pubkey=to_pubkey,
                    lamports=lamports,
                ),
                fee_payer=from_pubkey,
                recent_blockhash=latest.blockhash,
            )

            if self.wallet.supports_sign_and_send:
                signature = await self.wallet.sign_and_send_transaction(transfer)
            else:
                signed = await self.wallet.sign_transaction(transfer)
                signature = await self.connection.send_raw_transaction(signed)

            await self.connection.confirm_transaction(signature, latest)
        except ChainError as e:
            logger.error("Donation failed", lamports=lamports, error=str(e))
            raise DonationError(str(e)) from e

        logger.info("Donation confirmed", lamports=lamports, signature=signature)
        return signature


def create_donation_service(
    wallet: WalletProvider,
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
) -> DonationService:
    """Donation service on the configured Solana cluster."""
    settings = settings or get_settings()
    connection = SolanaRpcConnection(
        http_client,
        cluster=settings.solana_cluster,
        rpc_url=settings.solana_rpc_url,
    )
    logger.info("Donation service created", cluster=connection.cluster, rpc_url=connection.rpc_url)
    return DonationService(wallet, connection, settings)
