class PlanipedaError(Exception):
    """Error carrying a message meant for the user and the HTTP status to answer with."""

    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidDataError(PlanipedaError):
    status_code = 400


class NotFoundError(PlanipedaError):
    status_code = 404


class ConflictError(PlanipedaError):
    status_code = 409
