class BookingError(Exception):
    """Base class for errors raised by the booking services."""


class ValidationError(BookingError):
    def __init__(self, field: str, message: str | None = None):
        self.field = field
        self.message = message or "You must fill in all fields"
        super().__init__(f"{self.message} ({field})")


class PastDateError(BookingError):
    def __init__(self, message: str = "Can't create booking in the past"):
        self.message = message
        super().__init__(message)


class NotFoundError(BookingError):
    def __init__(self, entity: str, entity_id: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail)


class ProcessingError(BookingError):
    def __init__(self, message: str = "An error occurred while processing the request."):
        self.message = message
        super().__init__(message)


class StorageError(BookingError):
    pass


class NotificationDeliveryError(BookingError):
    pass
