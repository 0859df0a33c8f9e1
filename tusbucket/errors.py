"""Error types shared by the storage backend."""

from __future__ import annotations


class TusError(Exception):
    """An error that carries a protocol error code and an HTTP status."""

    def __init__(self, code: str, message: str, status: int = 500) -> None:
        super().__init__(code, message, status)
        self.code = code
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TusError):
            return NotImplemented
        return (self.code, self.message, self.status) == (
            other.code,
            other.message,
            other.status,
        )

    def __hash__(self) -> int:
        return hash((self.code, self.message, self.status))


class S3APIError(Exception):
    """An error reported by the S3 API, identified by its error code."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"api error {self.code}: {self.message}"


class S3ResponseError(Exception):
    """An HTTP-level error response from the S3 service.

    Header names are stored lower-cased so lookups are case-insensitive.
    """

    def __init__(
        self,
        status_code: int,
        headers: dict[str, str] | None = None,
        message: str = "",
    ) -> None:
        super().__init__(status_code, message)
        self.status_code = status_code
        self.headers = {name.lower(): value for name, value in (headers or {}).items()}
        self.message = message

    def __str__(self) -> str:
        text = f"response error StatusCode: {self.status_code}"
        return f"{text}, {self.message}" if self.message else text


ERR_NOT_FOUND = TusError("ERR_UPLOAD_NOT_FOUND", "upload not found", 404)
ERR_INCOMPLETE_UPLOAD = TusError(
    "ERR_INCOMPLETE_UPLOAD", "cannot stream non-finished upload", 400
)


def _chain(err: BaseException | None):
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__ if err.__cause__ is not None else err.__context__


def error_code(err: BaseException | None) -> str | None:
    """Return the S3 error code found in the exception or its causes, if any."""
    for exc in _chain(err):
        if isinstance(exc, S3APIError):
            return exc.code
    return None


def is_error_code(err: BaseException | None, *args: str) -> bool:
    """Tell whether the exception carries one of the given S3 error codes."""
    code = error_code(err)
    return code is not None and code in args