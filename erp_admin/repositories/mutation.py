from typing import Any, Callable, Optional

from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiError


class Mutation:
    """
    Tracks one mutation call: idle -> pending -> success | error.
    Validation and API failures are captured on the object; anything else propagates.
    """

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"

    def __init__(self, fn: Callable[..., Any]):
        self.fn = fn
        self.status = self.IDLE
        self.data: Any = None
        self.error: Optional[Exception] = None

    @property
    def is_pending(self) -> bool:
        return self.status == self.PENDING

    @property
    def is_success(self) -> bool:
        return self.status == self.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == self.ERROR

    def mutate(self, *args, **kwargs) -> "Mutation":
        if self.is_pending:
            raise RuntimeError("Mutation already in flight")
        self.status = self.PENDING
        self.data = None
        self.error = None
        try:
            self.data = self.fn(*args, **kwargs)
        except (ApiError, ValidationError) as e:
            self.error = e
            self.status = self.ERROR
        except Exception:
            self.status = self.ERROR
            raise
        else:
            self.status = self.SUCCESS
        return self

    def reset(self) -> None:
        self.status = self.IDLE
        self.data = None
        self.error = None
