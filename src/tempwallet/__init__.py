"""Custodial multi-chain wallet backend for an off-chain settlement network."""

__version__ = "0.1.0"
