"""Reportable errors raised by the catalog services.

Each carries the HTTP status the API layer answers with; ``main`` registers
a single handler for ``CatalogError``.
"""


class CatalogError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"message": self.message}


class ValidationFailed(CatalogError):
    """Field-level failures: field name -> list of messages."""

    status_code = 422

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed."):
        super().__init__(message)
        self.errors = {field: list(messages) for field, messages in errors.items()}

    def payload(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFound(CatalogError):
    status_code = 404


class Conflict(CatalogError):
    status_code = 409


class Unauthorized(CatalogError):
    status_code = 401
