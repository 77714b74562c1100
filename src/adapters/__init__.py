"""Adapters implementing the core ports (Playwright, Telegram, JSON file)."""
