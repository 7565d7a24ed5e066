"""Error taxonomy shared by the store, the reports and the API layer."""


class ResourceError(Exception):
    """Base class for errors that are reported back to the client."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ResourceError):
    """A required field is missing or a value does not validate."""

    status_code = 400


class NotFoundError(ResourceError):
    """The referenced id (or composite key) does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class StorageError(ResourceError):
    """Constraint violation or connectivity fault raised by the database."""

    status_code = 409


class InvalidActionError(ResourceError):
    """The action is unknown or does not apply to the addressed resource."""

    status_code = 400

    def __init__(self, action=None):
        self.action = action
        super().__init__("Invalid action")
