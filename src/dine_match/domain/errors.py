"""Error taxonomy for session and ledger operations."""


class DineMatchError(Exception):
    """Base error carrying a machine-readable kind."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SessionNotFoundError(DineMatchError):
    """Session or key is unknown or expired."""

    kind = "not_found"

    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)


class SessionFullError(DineMatchError):
    """Admission would exceed the participant cap."""

    kind = "session_full"

    def __init__(self, message: str = "Session is full") -> None:
        super().__init__(message)


class DuplicateSwipeError(DineMatchError):
    """A decision for this participant and candidate already exists."""

    kind = "duplicate_swipe"

    def __init__(
        self, message: str = "Swipe already recorded for this candidate"
    ) -> None:
        super().__init__(message)


class KeyGenerationExhaustedError(DineMatchError):
    """No collision-free join key was found within the retry budget."""

    kind = "key_generation_exhausted"

    def __init__(self, message: str = "Failed to generate unique key") -> None:
        super().__init__(message)


class InvalidKeyFormatError(DineMatchError):
    """Join key does not match the key alphabet and length."""

    kind = "invalid_key_format"

    def __init__(self, message: str = "Invalid key format") -> None:
        super().__init__(message)


class NotParticipantError(DineMatchError):
    """Connection has not been admitted to the session."""

    kind = "not_participant"

    def __init__(self, message: str = "Not a participant of this session") -> None:
        super().__init__(message)


class InvalidEventError(DineMatchError):
    """Realtime message could not be parsed."""

    kind = "invalid_event"


class SessionKeyConflictError(Exception):
    """Raised by session stores when a key is already taken."""


class MembershipConflictError(DineMatchError):
    """Membership kept changing underneath a conditional write."""

    kind = "conflict"

    def __init__(
        self, message: str = "Session changed concurrently, please retry"
    ) -> None:
        super().__init__(message)
