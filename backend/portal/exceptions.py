"""
Error taxonomy for the portal.

Every failure that leaves a service is one of these. Each carries a short,
non-technical ``public_message`` for the client and an HTTP status; the
diagnostic detail stays in ``str(exc)`` and goes to the log only.
"""

INVALID_CREDENTIALS = "Invalid credentials."


class PortalError(Exception):
    status_code = 400
    public_message = "Request could not be completed."

    def __init__(self, detail: str = None, public_message: str = None):
        self.detail = detail or self.public_message
        if public_message is not None:
            self.public_message = public_message
        super().__init__(self.detail)


class ValidationError(PortalError):
    status_code = 422
    public_message = "Invalid input."

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}", public_message=f"{field} {reason}")


class AllocationExhausted(PortalError):
    status_code = 503
    public_message = "Unable to generate a unique patient ID. Please try registering again."

    def __init__(self, prefix: str, attempts: int):
        self.prefix = prefix
        self.attempts = attempts
        super().__init__(f"no free identifier for prefix {prefix} after {attempts} attempts")


class AlreadyExists(PortalError):
    status_code = 409
    public_message = "This account is already registered."

    def __init__(self, kind: str, key: str, public_message: str = None):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' already exists", public_message=public_message)


class IdentifierNotFound(PortalError):
    status_code = 401
    public_message = INVALID_CREDENTIALS

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"no mapping for identifier {identifier}")


class CredentialMismatch(PortalError):
    status_code = 401
    public_message = INVALID_CREDENTIALS


class StorageUnavailable(PortalError):
    status_code = 503
    public_message = "Service unavailable, please try again."


class NotFound(PortalError):
    status_code = 404
    public_message = "Not found."


class PermissionDenied(PortalError):
    status_code = 403
    public_message = "Access denied."
