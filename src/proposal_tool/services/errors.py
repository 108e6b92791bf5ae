"""Service-layer exceptions translated to HTTP status codes by the API."""


class NotFoundError(ValueError):
    """Requested entity does not exist (404)."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found")


def reject_nulls(updates: dict, nullable=()):
    """Raise ValueError for a field explicitly set to None that cannot be cleared."""
    for key, value in updates.items():
        if value is None and key not in nullable:
            raise ValueError(f"Field '{key}' cannot be null")
