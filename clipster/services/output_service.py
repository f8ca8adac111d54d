"""Clipboard and desktop-notification collaborators."""

import logging
from typing import Callable, Optional

import pyperclip
from plyer import notification

from ..errors import PublishError

logger = logging.getLogger(__name__)

APP_NAME = "Clipster"


class OutputService:
    """Places responses on the clipboard and shows desktop notifications."""

    def __init__(self,
                 notifications_enabled: bool = True,
                 copy_func: Optional[Callable[[str], None]] = None,
                 notify_func: Optional[Callable[..., None]] = None):
        """Initialize output service.

        Args:
            notifications_enabled: Show desktop notifications
            copy_func: Clipboard writer (defaults to pyperclip.copy)
            notify_func: Notification function (defaults to plyer's notification.notify)
        """
        self.notifications_enabled = notifications_enabled
        self._copy = copy_func or pyperclip.copy
        self._notify = notify_func or notification.notify

    def set_text(self, text: str) -> None:
        """Copy text to the system clipboard.

        Raises:
            PublishError: If no clipboard mechanism is available
        """
        try:
            self._copy(text)
        except pyperclip.PyperclipException as e:
            raise PublishError(f"Clipboard unavailable: {e}") from e
        except Exception as e:
            raise PublishError(f"Clipboard write failed: {e}") from e
        logger.debug(f"Copied {len(text)} characters to clipboard")

    def notify(self, title: str, body: str) -> None:
        """Show a desktop notification. Best-effort: failures are only logged."""
        if not self.notifications_enabled:
            return
        try:
            self._notify(title=title, message=body, app_name=APP_NAME, timeout=5)
        except Exception as e:
            logger.debug(f"Notification failed ({title!r}): {e}")
