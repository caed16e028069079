"""Domain errors shared by services and the HTTP layer."""


class NotFoundError(ValueError):
    """Requested resource does not exist or is not visible to the caller."""


class UpstreamError(Exception):
    """Database or storage provider failed. Reported as a generic 500."""
