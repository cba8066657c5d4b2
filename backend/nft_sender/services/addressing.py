"""
Recipient addressing for the Crossmint mint endpoint.

Crossmint expects recipients as locators:
    email:<address>:<chain>   for email recipients
    <chain>:<address>         for wallet recipients
Locators and anything that is neither an email nor a known wallet format are
passed through unchanged.
"""

import re

from nft_sender.blockchain import AddressFamily, Blockchain, chain_registry


WALLET_ADDRESS_REGEX_MAP: dict[AddressFamily, re.Pattern[str]] = {
    AddressFamily.SOLANA: re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"),
    AddressFamily.EVM: re.compile(r"^0x[a-fA-F0-9]{40}$"),
}

INVALID_ADDRESS_PATTERNS: dict[AddressFamily, re.Pattern[str]] = {
    AddressFamily.SOLANA: re.compile(r"invalid\s+solana\s+address", re.IGNORECASE),
    AddressFamily.EVM: re.compile(
        r"invalid\s+(evm|ethereum|polygon|chiliz)\s+address", re.IGNORECASE
    ),
}


def classify_wallet_address(wallet_address: str) -> AddressFamily | None:
    """Classify wallet address format into normalized address family."""
    address = wallet_address.strip()
    if not address:
        return None

    for family, pattern in WALLET_ADDRESS_REGEX_MAP.items():
        if pattern.fullmatch(address):
            return family

    return None


def is_email(recipient: str) -> bool:
    return "@" in recipient


def is_locator(recipient: str) -> bool:
    """Already in `email:...` or `<chain>:...` form."""
    prefix, separator, _ = recipient.partition(":")
    return bool(separator) and (prefix == "email" or prefix in {c.value for c in Blockchain})


def format_recipient(recipient: str, blockchain: Blockchain | str) -> str:
    """Build the provider locator for a recipient on the given chain."""
    chain = Blockchain(blockchain).value
    recipient = recipient.strip()
    if is_locator(recipient):
        return recipient
    if is_email(recipient):
        return f"email:{recipient}:{chain}"
    if classify_wallet_address(recipient) is not None:
        return f"{chain}:{recipient}"
    return recipient


def explain_provider_error(message: str, recipient: str, blockchain: Blockchain | str | None = None) -> str:
    """
    Rewrite address-format rejections into a blockchain mismatch hint.

    The provider answers e.g. "Invalid solana address" when an EVM wallet is
    sent to a Solana collection. Other messages are returned unchanged.
    """
    if not message or is_email(recipient):
        return message

    supplied = classify_wallet_address(recipient)
    if supplied is None:
        return message

    for expected, pattern in INVALID_ADDRESS_PATTERNS.items():
        if expected != supplied and pattern.search(message):
            expected_name = _family_name(expected, blockchain)
            article = "an" if expected_name[:1] in "AEIOU" else "a"
            return (
                f"Blockchain mismatch: the collection expects {article} {expected_name} address "
                f"but {_family_label(supplied)} address was supplied ({message})"
            )
    return message


def _family_label(family: AddressFamily) -> str:
    return "a Solana" if family == AddressFamily.SOLANA else "an EVM (0x...)"


def _family_name(family: AddressFamily, blockchain: Blockchain | str | None) -> str:
    if blockchain:
        profile = chain_registry.get(blockchain)
        if profile.address_family == family:
            return profile.readable_name
    return "Solana" if family == AddressFamily.SOLANA else "EVM"
