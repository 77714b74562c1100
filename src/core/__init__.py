"""Core domain package for pagescope.

Core contains rule matching, href normalization, fingerprinting and the
notification state machine without any browser, Telegram or file-specific
code, keeping the change-detection logic portable and testable.
"""
