class StorefrontError(Exception):
    """Base error for catalog workflows."""


class NotFoundError(StorefrontError):
    """A referenced product or variant row does not exist."""

    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")
