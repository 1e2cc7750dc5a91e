"""Token address validation.

Pure format checks only; no network calls. Used to decide which primary
source addresses are worth sending to the enrichment source and to reject
bad path parameters at the request boundary.
"""

# Solana base58 alphabet (excludes 0, O, I, l to avoid confusion)
BASE58_ALPHABET = frozenset("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")

SOLANA_ADDRESS_MIN_LENGTH = 32
SOLANA_ADDRESS_MAX_LENGTH = 44

# Null-address heuristic
NULL_ADDRESS_RUN = "0" * 40


def is_valid_token_address(address: object) -> bool:
    """Check whether a value looks like a Solana token mint address.

    Rejects foreign-ledger formats (EVM ``0x`` hex, dotted names, Cosmos
    ``ibc/`` denoms), lengths outside 32-44, non-base58 characters, and
    long runs of zeros. Never raises.

    Args:
        address: Candidate address.

    Returns:
        True if the address has a plausible Solana format, False otherwise.

    Example:
        >>> is_valid_token_address("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263")
        True
        >>> is_valid_token_address("0x6982508145454ce325ddbe47a25d4ec3d2311933")
        False
    """
    if not isinstance(address, str) or not address:
        return False

    if address.startswith("0x"):
        return False
    if "." in address or "ibc/" in address:
        return False

    if not (SOLANA_ADDRESS_MIN_LENGTH <= len(address) <= SOLANA_ADDRESS_MAX_LENGTH):
        return False

    if not all(c in BASE58_ALPHABET for c in address):
        return False

    return NULL_ADDRESS_RUN not in address


def filter_valid_addresses(addresses: list[str]) -> list[str]:
    """Deduplicate addresses, keeping first-seen order, and drop invalid ones."""
    seen: set[str] = set()
    valid: list[str] = []
    for address in addresses:
        if address in seen:
            continue
        seen.add(address)
        if is_valid_token_address(address):
            valid.append(address)
    return valid
