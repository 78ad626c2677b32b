from typing import Any, Optional


class ShelfError(Exception):
    """Error raised by the booking services.

    Carries the HTTP status the request layer should answer with and whether
    the failure is worth alerting an operator about. Expected rejections, such
    as a user asking for a booking they may not see, set
    ``should_be_captured=False``.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        status: int = 500,
        label: str = "Unknown",
        should_be_captured: bool = True,
        additional_data: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status = status
        self.label = label
        self.should_be_captured = should_be_captured
        self.additional_data = additional_data or {}
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self):
        return (
            f"ShelfError(status={self.status}, label={self.label!r}, "
            f"message={self.message!r})"
        )
