"""
Chain descriptions for the blockchains the minting provider supports.

Each supported chain is described by a ChainProfile. The profile decides how
recipients are addressed on that chain and what the validator tells the
operator about compatible wallets. To support a new chain:
1. Add it to the Blockchain enum
2. Describe it with a ChainProfile
3. Register the profile in the chain registry
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Blockchain(str, Enum):
    """Supported blockchains (Crossmint chain identifiers)."""
    SOLANA = "solana"
    POLYGON_AMOY = "polygon-amoy"
    ETHEREUM_SEPOLIA = "ethereum-sepolia"
    CHILIZ = "chiliz"


class AddressFamily(str, Enum):
    """Wallet address formats."""
    EVM = "evm"
    SOLANA = "solana"


@dataclass(frozen=True)
class ChainProfile:
    """Static description of a supported chain."""
    blockchain: Blockchain
    readable_name: str
    address_family: AddressFamily
    example_address: str

    @property
    def is_evm(self) -> bool:
        return self.address_family == AddressFamily.EVM

    @property
    def is_solana(self) -> bool:
        return self.address_family == AddressFamily.SOLANA

    @property
    def wallet_prefix(self) -> str:
        return "Solana addresses" if self.is_solana else "EVM addresses (0x...)"

    @property
    def recommended_address_format(self) -> str:
        kind = "Solana address" if self.is_solana else "EVM address"
        return f"{kind} (e.g., {self.example_address})"

    def compatible_wallets(self, requires_format: str) -> Dict[str, Any]:
        """Wallet compatibility hints in the shape the dashboard expects."""
        return {
            "isEVM": self.is_evm,
            "isSolana": self.is_solana,
            "requiresFormat": requires_format,
            "walletPrefix": self.wallet_prefix,
            "recommendedAddressFormat": self.recommended_address_format,
            "expectedAddressType": self.address_family.value,
        }
