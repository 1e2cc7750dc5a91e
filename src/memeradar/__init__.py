"""MemeRadar - Solana memecoin metadata aggregator."""

__version__ = "1.0.0"
