"""Errors raised by the remote service clients."""

from typing import Optional

import httpx


class RemoteServiceError(Exception):
    """A remote call returned a non-success status."""

    def __init__(self, status_code: int, status: Optional[str], message: str):
        self.status_code = status_code
        self.status = status
        self.message = message
        super().__init__(f"{status_code} {status or 'ERROR'}: {message}")


class AlreadyExistsError(RemoteServiceError):
    pass


class NotFoundError(RemoteServiceError):
    pass


def raise_for_google_status(response: httpx.Response) -> None:
    """Raise a RemoteServiceError built from a Google API error body."""
    if response.is_success:
        return

    status = None
    message = response.text
    try:
        error = response.json().get("error", {})
        status = error.get("status")
        message = error.get("message", message)
    except (ValueError, AttributeError):
        pass  # not a JSON error body

    if response.status_code == 409 or status == "ALREADY_EXISTS":
        raise AlreadyExistsError(response.status_code, status, message)
    if response.status_code == 404 or status == "NOT_FOUND":
        raise NotFoundError(response.status_code, status, message)
    raise RemoteServiceError(response.status_code, status, message)
