"""Errors raised by the service registry and its watcher."""


class RegistryError(Exception):
    """Base class for registry errors."""


class RegistryNotInitializedError(RegistryError):
    """Raised when the registry root lacks its marker file."""

    def __init__(self, root):
        self.root = root
        super().__init__(f"registry at '{root}' is not initialized")


class InvalidIdError(RegistryError):
    """Raised for malformed service IDs."""

    def __init__(self, service_id: str):
        self.id = service_id
        super().__init__(f"invalid service ID '{service_id}'")


class InvalidTagNameError(RegistryError):
    """Raised for malformed tag names."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"invalid tag name '{tag}'")


class IdExistsError(RegistryError):
    """Raised when adding a service whose ID is taken."""

    def __init__(self, service_id: str):
        self.id = service_id
        super().__init__(f"service '{service_id}' already exists")


class IdNotExistsError(RegistryError):
    """Raised when a service ID is unknown."""

    def __init__(self, service_id: str):
        self.id = service_id
        super().__init__(f"service '{service_id}' does not exist")


class TagNotExistsError(RegistryError):
    """Raised when a tag directory is unknown."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"tag '{tag}' does not exist")


class WatchError(RegistryError):
    """Raised when the watcher cannot subscribe or loses its subscription."""


class SignatureError(RegistryError):
    """Raised when a signed message does not verify against a service's keys."""

    def __init__(self, service_id: str, reason: str):
        self.id = service_id
        self.reason = reason
        super().__init__(f"signature check failed for '{service_id}': {reason}")
