# finance_api/errors.py


class LedgerError(Exception):
    """Base class for failures the API reports with a specific status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(LedgerError):
    status_code = 400


class NotFound(LedgerError):
    status_code = 404


class Forbidden(LedgerError):
    status_code = 403


class InvalidState(LedgerError):
    status_code = 400
