"""Agent Payment Gateway - Solana-settled pay-per-task gateway for AI agents."""

__version__ = "0.1.0"
