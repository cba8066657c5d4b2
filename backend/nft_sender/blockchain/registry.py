"""
Chain registry.

Central lookup for chain profiles, plus the mapping from the provider's
free-text chain names (e.g. "polygon-amoy", "ethereum-sepolia", "solana")
onto the supported Blockchain values.
"""

from typing import Dict, Optional
from nft_sender.blockchain.base import (
    AddressFamily,
    Blockchain,
    ChainProfile,
)

# Substring checks, in order; anything unmatched falls back to DEFAULT_BLOCKCHAIN
PROVIDER_CHAIN_KEYWORDS = (
    ("polygon", Blockchain.POLYGON_AMOY),
    ("ethereum", Blockchain.ETHEREUM_SEPOLIA),
    ("solana", Blockchain.SOLANA),
)
DEFAULT_BLOCKCHAIN = Blockchain.CHILIZ


class ChainRegistry:
    """
    Registry of supported chain profiles.

    Usage:
        registry.register(ChainProfile(Blockchain.SOLANA, "Solana", AddressFamily.SOLANA, "7Nw3..."))
        profile = registry.get(Blockchain.SOLANA)
        chain = registry.infer("polygon-amoy")
    """

    def __init__(self):
        self._profiles: Dict[Blockchain, ChainProfile] = {}

    def register(self, profile: ChainProfile) -> None:
        self._profiles[profile.blockchain] = profile

    def is_registered(self, blockchain: Blockchain) -> bool:
        return blockchain in self._profiles

    def get(self, blockchain: Blockchain | str) -> ChainProfile:
        """Get the profile for a chain. Accepts enum members or raw values."""
        chain = Blockchain(blockchain)
        if not self.is_registered(chain):
            raise ValueError(f"Blockchain {chain.value} is not registered")
        return self._profiles[chain]

    def get_supported_chains(self) -> list[Blockchain]:
        return list(self._profiles)

    def infer(self, provider_chain: Optional[str]) -> Blockchain:
        """Map the provider's chain identifier onto a supported blockchain."""
        chain = (provider_chain or "").lower()
        for keyword, blockchain in PROVIDER_CHAIN_KEYWORDS:
            if keyword in chain:
                return blockchain
        return DEFAULT_BLOCKCHAIN

    def readable_chain(self, provider_chain: Optional[str]) -> str:
        """Display name for a provider chain identifier."""
        chain = (provider_chain or "").lower()
        if not chain:
            return ""
        for profile in self._profiles.values():
            if profile.blockchain.value.split("-")[0] in chain:
                return profile.readable_name
        return chain[:1].upper() + chain[1:]

    def compatible_wallets(self, provider_chain: Optional[str]) -> dict:
        profile = self.get(self.infer(provider_chain))
        return profile.compatible_wallets((provider_chain or "").lower())


# Global registry instance
chain_registry = ChainRegistry()


def register_chains() -> None:
    """Register all supported chains. Add new chain profiles here."""
    chain_registry.register(ChainProfile(
        Blockchain.SOLANA,
        readable_name="Solana",
        address_family=AddressFamily.SOLANA,
        example_address="7Nw3Sbj8wNXnGzL6M6xx1GRFGwRk5VfhRGQmzYN2eL3H",
    ))
    chain_registry.register(ChainProfile(
        Blockchain.POLYGON_AMOY,
        readable_name="Polygon",
        address_family=AddressFamily.EVM,
        example_address="0x1234...",
    ))
    chain_registry.register(ChainProfile(
        Blockchain.ETHEREUM_SEPOLIA,
        readable_name="Ethereum",
        address_family=AddressFamily.EVM,
        example_address="0x1234...",
    ))
    chain_registry.register(ChainProfile(
        Blockchain.CHILIZ,
        readable_name="Chiliz",
        address_family=AddressFamily.EVM,
        example_address="0x1234...",
    ))


register_chains()
