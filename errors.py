class CouncilError(Exception):
    """Base class for errors that map onto an HTTP response.

    The message is shown to the caller, so it must never carry the signing
    secret or storage keys.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(CouncilError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(CouncilError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(CouncilError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(CouncilError):
    status_code = 404
    default_message = "Not found"


class SeatTaken(CouncilError):
    status_code = 409
    default_message = "Seat already taken"


class StorageUnavailable(CouncilError):
    status_code = 500
    default_message = "Storage unavailable"
