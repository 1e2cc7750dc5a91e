"""Test data factories using factory_boy.

These factories generate realistic token records and upstream payloads.
"""

from tests.factories.token import (
    TokenRecordFactory,
    dexscreener_pair,
    generate_valid_solana_address,
    geckoterminal_token,
)

__all__ = [
    "TokenRecordFactory",
    "dexscreener_pair",
    "generate_valid_solana_address",
    "geckoterminal_token",
]
