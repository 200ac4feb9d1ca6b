"""Nexus - media portal backend with accounts and credit-gated AI generation."""

__version__ = "1.0.0"
