"""Error taxonomy shared by the service layer, the routes and the client."""


class ExpenseError(Exception):
    """Base class for expense errors. `status_code` is the HTTP mapping."""

    status_code = 500

    def __init__(self, message: str, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ExpenseError):
    """A required field is missing or a supplied value is invalid."""

    status_code = 400


class NotFoundError(ExpenseError):
    """No expense exists with the requested id."""

    status_code = 404


class StoreError(ExpenseError):
    """The document store could not be reached or the query failed."""

    status_code = 500
