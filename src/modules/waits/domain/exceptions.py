"""Wait-time domain exceptions."""

from src.core.domain.exceptions import EntityNotFoundError


class AttractionNotFoundError(EntityNotFoundError):
    """Raised when an attraction id is not in the current catalog."""

    def __init__(self, attraction_id: str):
        super().__init__("Attraction", attraction_id)
