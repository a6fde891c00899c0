"""Probe a Geyser gRPC node for its per-subscription account pubkey limit."""

__version__ = "0.1.0"
__all__ = ["__version__"]