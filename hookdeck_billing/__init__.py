"""Chargebee -> Hookdeck webhook routing: provisioning CLI and downstream handlers."""

__version__ = "0.1.0"
