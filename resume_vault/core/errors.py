"""Error taxonomy shared by the stores, the guard and the file manager.

Every error carries a short, caller-safe message. Storage paths and driver
errors are logged where they happen and never put into ``message``.
"""


class VaultError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str = "Unexpected error"):
        super().__init__(message)
        self.message = message


class ValidationError(VaultError):
    """Missing or invalid input; raised before anything is mutated."""

    status_code = 400
    code = "validation_error"


class NotFound(VaultError):
    status_code = 404
    code = "not_found"


class Forbidden(VaultError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class StorageFailure(VaultError):
    status_code = 500
    code = "storage_failure"

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message)
