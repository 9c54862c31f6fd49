class RoomFinderError(Exception):
    """Base class for errors raised by the roommate services."""


class ProfileIncompleteError(RoomFinderError):
    """The requester has no roommate profile or has not opted in to matching."""

    def __init__(self, message: str = "Please complete your roommate profile first and set lookingForRoommate to true"):
        super().__init__(message)
        self.message = message


class InvalidObjectIdError(RoomFinderError):
    def __init__(self, value):
        super().__init__(f"Invalid ID format: {value!r}")
        self.value = value


class DuplicateEmailError(RoomFinderError):
    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email
