"""Outbound integrations: voice readout and donation wallet."""
from .speech import SpeechProvider, NullSpeechProvider, ElevenLabsSpeechProvider
from .wallet import (
    WalletProvider,
    ChainConnection,
    SolanaRpcConnection,
    TransferInstruction,
    UnsignedTransfer,
    LatestBlockhash,
)

__all__ = [
    "SpeechProvider",
    "NullSpeechProvider",
    "ElevenLabsSpeechProvider",
    "WalletProvider",
    "ChainConnection",
    "SolanaRpcConnection",
    "TransferInstruction",
    "UnsignedTransfer",
    "LatestBlockhash",
]
