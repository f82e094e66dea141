"""
Workflow errors
ValueError subclasses so callers that only know ValueError still catch them;
routers map each one to its HTTP status
"""


class NotFoundError(ValueError):
    """Room, booking or promotion does not exist"""


class InvalidStateError(ValueError):
    """Request conflicts with the current room/booking state"""


class ConcurrentUpdateError(ValueError):
    """A conditional update lost the race against another writer"""
