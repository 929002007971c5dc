"""Error taxonomy shared by the store and the HTTP layer.

Every error carries the HTTP status it maps to and the short ``error`` label
used in the ``{error, message}`` response body.
"""


class EMRError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": self.error, "message": self.message}


class Unauthorized(EMRError):
    status_code = 401
    error = "Unauthorized"


class NotFound(EMRError):
    status_code = 404
    error = "Not Found"


class InvalidInput(EMRError):
    status_code = 400
    error = "Bad Request"


class InternalError(EMRError):
    pass
