"""Terminal output."""

from .console import ClipsterConsole

__all__ = ['ClipsterConsole']
