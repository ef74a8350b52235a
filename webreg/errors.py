"""Exceptions raised by the WebReg client."""


class WebRegError(Exception):
    """Base class for every error raised by this package."""


class TransportError(WebRegError):
    """The request never produced a response (connection failure, timeout)."""


class BadStatusCodeError(WebRegError):
    def __init__(self, status_code: int):
        super().__init__(f"WebReg responded with status code {status_code}")
        self.status_code = status_code


class ResponseDecodeError(WebRegError):
    """The response body was not the JSON shape we expected."""

    def __init__(self, detail: str):
        super().__init__(f"Could not decode WebReg response: {detail}")
        self.detail = detail


class SessionInvalidError(WebRegError):
    def __init__(self):
        super().__init__(
            "WebReg rejected the session; the cookies may have expired "
            "or the term is not associated with this session"
        )


class OperationFailedError(WebRegError):
    """WebReg processed the request but reported that the operation failed."""

    def __init__(self, reason: str):
        super().__init__(reason or "WebReg reported a failure without a reason")
        self.reason = reason


class InputError(WebRegError, ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class SectionNotFoundError(WebRegError, LookupError):
    pass


class RowParseError(WebRegError, ValueError):
    """A meeting row carried a value we could not parse."""


class DayCodeError(RowParseError):
    """A day code contained a character other than the weekday digits 1-5."""


class DateParseError(RowParseError):
    def __init__(self, value: str):
        super().__init__(f"Invalid date {value!r} in meeting row")
        self.value = value
