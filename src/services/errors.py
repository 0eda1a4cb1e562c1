from fastapi import HTTPException, status


class ContactError(Exception):
    """Base class for the outcomes a contacts operation can fail with."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedInput(ContactError):
    """The identifier or the request body is not acceptable."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class NotFound(ContactError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Contact not found"):
        super().__init__(message)


class Conflict(ContactError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)


class Unexpected(ContactError):
    """A store failure. ``message`` is safe to return, ``cause`` is only logged."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


def to_http_exception(error: ContactError) -> HTTPException:
    """
    Translates a contacts error into the HTTP response it should produce.

    :param error: The error raised by the repository.
    :type error: ContactError
    :raises TypeError: If the error is not one of the known variants.
    :return: The exception for FastAPI to render.
    :rtype: HTTPException
    """
    if isinstance(error, MalformedInput):
        if error.errors:
            return HTTPException(status_code=error.status_code, detail={"message": error.message, "errors": error.errors})
        return HTTPException(status_code=error.status_code, detail=error.message)
    if isinstance(error, (NotFound, Conflict, Unexpected)):
        return HTTPException(status_code=error.status_code, detail=error.message)
    raise TypeError(f"Unhandled contact error: {error!r}")
