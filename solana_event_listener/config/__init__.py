"""
Configuration management for the Solana event listener.

Loads and validates settings from CLI flags, environment variables and an
optional .env file. Exposes a single resolved Settings object to the core.
"""

from solana_event_listener.config.settings import Settings, load_settings  # noqa: F401

__all__ = ["Settings", "load_settings"]
