from fastapi import HTTPException, status


class DispatchError(HTTPException):
    """
    Base class for expected domain failures. Subclasses pin the HTTP status
    so services only pick the failure kind and a message.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail, headers: dict | None = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class ValidationFailed(DispatchError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(DispatchError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidState(DispatchError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(DispatchError):
    status_code = status.HTTP_409_CONFLICT


class Unauthenticated(DispatchError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail="Could not validate credentials"):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})
