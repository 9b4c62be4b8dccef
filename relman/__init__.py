"""Changelog generation and release bookkeeping for git repositories."""

__version__ = "0.4.0"
