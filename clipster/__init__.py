"""Clipster - push-to-talk voice queries to AI chat providers, answers on the clipboard."""

__version__ = "0.1.0"
