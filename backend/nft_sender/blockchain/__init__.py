from nft_sender.blockchain.base import (
    AddressFamily,
    Blockchain,
    ChainProfile,
)
from nft_sender.blockchain.registry import chain_registry

__all__ = [
    "AddressFamily",
    "Blockchain",
    "ChainProfile",
    "chain_registry",
]
