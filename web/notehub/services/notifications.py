"""
NoteHub Web — Toast Notifications
===================================

What:  Short-lived success/error messages shown above the page content.
How:   A ToastQueue collects toasts during a request. When the request ends
       in a redirect, the queue is written to a flash cookie and read back
       (and cleared) by the next page render.
"""

import base64
import json
import logging
from dataclasses import asdict, dataclass
from typing import List

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

FLASH_COOKIE = "notehub_flash"


@dataclass(frozen=True)
class Toast:
    level: str  # "success" | "error"
    message: str


class ToastQueue:
    """Collects toasts for one request."""

    def __init__(self) -> None:
        self._toasts: List[Toast] = []

    def __len__(self) -> int:
        return len(self._toasts)

    def success(self, message: str) -> None:
        self._toasts.append(Toast("success", message))

    def error(self, message: str) -> None:
        self._toasts.append(Toast("error", message))

    def drain(self) -> List[Toast]:
        """Return all queued toasts and empty the queue."""
        toasts, self._toasts = self._toasts, []
        return toasts


def write_flash(response: Response, toasts: List[Toast]) -> None:
    """Carry `toasts` across a redirect in a short-lived cookie."""
    if not toasts:
        return
    # Unpadded urlsafe base64 stays inside the unquoted cookie-value charset.
    payload = base64.urlsafe_b64encode(json.dumps([asdict(t) for t in toasts]).encode()).decode().rstrip("=")
    response.set_cookie(FLASH_COOKIE, payload, max_age=60, httponly=True, samesite="lax")


def read_flash(request: Request) -> List[Toast]:
    """Toasts left by the previous response. Pair with clear_flash()."""
    raw = request.cookies.get(FLASH_COOKIE)
    if not raw:
        return []
    try:
        decoded = json.loads(base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4)))
        return [Toast(level=t["level"], message=t["message"]) for t in decoded]
    except (ValueError, KeyError, TypeError):
        logger.warning("Discarding malformed flash cookie")
        return []


def clear_flash(request: Request, response: Response) -> None:
    if FLASH_COOKIE in request.cookies:
        response.delete_cookie(FLASH_COOKIE)
