"""Error taxonomy shared by the auth core and the HTTP handlers.

Every error carries the status code and the client-facing message used by the
exception handlers registered in ``openwings.main``. Messages are generic on
purpose so that storage details and credential hints never reach the client.
"""


class OpenWingsError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(OpenWingsError):
    status_code = 401
    message = "Invalid username or password"


class InvalidCredentialFormat(OpenWingsError):
    """A stored password value is not in ``salt:hash`` form."""


class DuplicateUser(OpenWingsError):
    status_code = 400
    message = "Registration failed"


class MalformedInput(OpenWingsError):
    status_code = 400
    message = "Invalid request"


class StorageUnavailable(OpenWingsError):
    """The database could not complete an operation.

    ``operation`` names what was attempted so logs can be diagnosed without
    recording parameter values.
    """

    def __init__(self, operation: str) -> None:
        super().__init__()
        self.operation = operation


class LoginRequired(OpenWingsError):
    status_code = 302
    message = "Login required"


class Forbidden(OpenWingsError):
    status_code = 403
    message = "Forbidden"


class NotFound(OpenWingsError):
    status_code = 404
    message = "Not Found"
