class OriginSyncError(Exception):
    """
    Base class for errors that end a single reconciliation attempt.
    """


class PreconditionError(OriginSyncError):
    """
    Raised when a service cannot be turned into an origin pool, e.g. it has no node port.
    """


class ResolutionError(OriginSyncError):
    """
    Raised when the pods backing a service cannot be listed.
    """


class MarshallingError(OriginSyncError):
    """
    Raised when an origin pool cannot be serialised for the XC API.
    """


class TransportError(OriginSyncError):
    """
    Raised when a request to the XC API fails without a response, e.g. on a timeout.
    """


class ApiError(OriginSyncError):
    """
    Raised when the XC API responds with an unsuccessful status.
    """
    def __init__(self, status_code, reason, detail = None):
        message = f"{status_code} {reason}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.detail = detail


class NotFound(ApiError):
    """
    Raised when the XC API responds that an origin pool does not exist.
    """
