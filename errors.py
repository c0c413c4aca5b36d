from typing import Optional


class ChatError(Exception):
    """Base for failures that map to a client-visible response."""

    status_code = 500

    def __init__(self, msg: str, status_code: Optional[int] = None):
        super().__init__(msg)
        self.msg = msg
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ChatError):
    status_code = 400


class ConflictError(ChatError):
    status_code = 400


class UnauthorizedError(ChatError):
    status_code = 400


class ForbiddenError(ChatError):
    status_code = 403


class NotFoundError(ChatError):
    status_code = 404
