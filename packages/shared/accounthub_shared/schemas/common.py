from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, model_serializer

T = TypeVar("T")


class Role(str, Enum):
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class Plan(str, Enum):
    FREE = "FREE"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


class OrgStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class ResponseStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class ErrorDetail(BaseModel):
    error: str
    message: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by every endpoint except the context lookup.

    ``response`` and ``errors`` are left out of the JSON body when unset.
    """

    status: ResponseStatus
    response: Optional[T] = None
    errors: Optional[List[ErrorDetail]] = None

    @model_serializer(mode="wrap")
    def _drop_absent(self, handler):
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def success(cls, response: Optional[T] = None) -> "ApiResponse[T]":
        return cls(status=ResponseStatus.SUCCESS, response=response)

    @classmethod
    def failure(cls, error: str, message: Optional[str] = None) -> "ApiResponse[T]":
        return cls(
            status=ResponseStatus.FAILURE,
            errors=[ErrorDetail(error=error, message=message)],
        )
