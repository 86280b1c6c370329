"""stowrage error types."""


class StowrageError(Exception):
    """Base class for every error raised by a ``Stowrage``."""


class NameDuplicationError(StowrageError):
    """Raised when adding an entry under a name that is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"An entry named {name!r} already exists")


class NameNotFoundError(StowrageError):
    """Raised when no entry exists under the given name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No entry named {name!r}")


class IDNotFoundError(StowrageError):
    """Raised when no entry exists with the given id."""

    def __init__(self, id: int) -> None:
        self.id = id
        super().__init__(f"No entry with id {id}")


class KeyUndefinedError(StowrageError):
    """Raised when changing structured data without naming the key."""

    def __init__(self) -> None:
        super().__init__("A key is required to change the value of structured data")


class InvalidKeyError(StowrageError):
    """Raised when a key is not present in an entry's structured data.

    Keys are never created implicitly; only existing keys can be changed.

    Attributes:
        key: The missing key.
        store_name: Name of the store the entry lives in.
    """

    def __init__(self, key: object, store_name: str) -> None:
        self.key = key
        self.store_name = store_name
        super().__init__(f"Key {key!r} does not exist in {store_name}")


class NonPersistentError(StowrageError):
    """Raised when a persistence-only action is attempted on a store
    that is not (or no longer) persistent.

    Attributes:
        store_name: Name of the store.
        action: What was attempted, e.g. ``"initiated"`` or ``"closed"``.
    """

    def __init__(self, store_name: str, action: str) -> None:
        self.store_name = store_name
        self.action = action
        super().__init__(f"{store_name} is not persistent and cannot be {action}")
