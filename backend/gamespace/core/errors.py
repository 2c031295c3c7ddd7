"""Domain errors raised by the service layer.

Services raise these instead of HTTPException so they stay usable outside a
request. ``gamespace.main`` maps them to HTTP responses:

    NotFoundError   -> 404
    ValidationError -> 400
    ConflictError   -> 409
"""

from typing import Optional, Union


class GamespaceError(Exception):
    """Base class for errors the API renders with a specific status."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(GamespaceError):
    """A referenced device, token, order, session, bill or customer does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[Union[int, str]] = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is not None:
            message = f"{entity} {entity_id} not found"
        else:
            message = f"{entity} not found"
        super().__init__(message)


class ValidationError(GamespaceError):
    """Bad input: player count over the device limit, re-ending a session, etc."""

    status_code = 400


class ConflictError(GamespaceError):
    """Device or Pool/Frame pair occupied, or token bound to another active order."""

    status_code = 409


class WebhookDeliveryError(GamespaceError):
    """A manually triggered webhook could not be delivered."""

    status_code = 502
