"""Categorized error hierarchy for the plugin host.

Every error raised by the host, its registries and its adapters derives from
PluginHostError and carries an ErrorCategory, so callers can decide how to
react without matching on message text.
"""

from enum import Enum, auto
from typing import Optional, Sequence


class ErrorCategory(Enum):
    """Categories of host errors."""

    CONFIGURATION = auto()  # Invalid app/builder/command definition or settings
    VERSION_PARSE = auto()  # Malformed version or version range
    REGISTRATION = auto()  # Duplicate name or failed on_register hook
    LOOKUP = auto()  # Unknown app or library
    COMPATIBILITY = auto()  # Requested library range not satisfied
    CONCURRENCY_LIMIT = auto()  # Running-instance cap reached
    RUNTIME = auto()  # Exception raised by app logic while running
    HOST_STATE = auto()  # Host or adapter used before initialize()
    INPUT = auto()  # Terminal input request conflicts


class PluginHostError(Exception):
    """Base exception for host errors with categorization."""

    def __init__(self, category: ErrorCategory, message: str):
        super().__init__(f"[{category.name}] {message}")
        self.category = category
        self.message = message


class ConfigurationError(PluginHostError, ValueError):
    """Invalid app definition, builder state or settings."""

    def __init__(self, message: str):
        super().__init__(ErrorCategory.CONFIGURATION, message)


class CommandUsageError(ConfigurationError):
    """Command-line arguments did not match a command's declaration."""

    def __init__(self, command: str, message: str):
        super().__init__(f"{command}: {message}")
        self.command = command


class VersionParseError(PluginHostError, ValueError):
    """A version or version range could not be parsed."""

    def __init__(self, text: str, kind: str = "version"):
        super().__init__(ErrorCategory.VERSION_PARSE, f"Invalid {kind}: {text!r}")
        self.text = text


class RegistrationError(PluginHostError):
    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(ErrorCategory.REGISTRATION, message)
        self.name = name


class HostLookupError(PluginHostError, LookupError):
    """Base class for unknown app/library lookups."""

    def __init__(self, message: str, key: str):
        super().__init__(ErrorCategory.LOOKUP, message)
        self.key = key


class AppNotFoundError(HostLookupError):
    def __init__(self, name: str):
        super().__init__(f"App not found: {name}", name)


class AdapterNotFoundError(HostLookupError):
    def __init__(self, library: str):
        super().__init__(f"No adapter registered for library: {library}", library)


class CompatibilityError(PluginHostError):
    """Requested library range is not satisfied by the installed adapter."""

    def __init__(
        self,
        app_name: str,
        library: str,
        requested: str,
        available: str,
        warnings: Sequence[str] = (),
        missing_features: Sequence[str] = (),
        required_shims: Sequence[str] = (),
    ):
        detail = "; ".join(warnings) if warnings else "version mismatch"
        super().__init__(
            ErrorCategory.COMPATIBILITY,
            f"App {app_name} requires {library}@{requested}, "
            f"available {available}: {detail}",
        )
        self.app_name = app_name
        self.library = library
        self.requested = requested
        self.available = available
        self.warnings = tuple(warnings)
        self.missing_features = tuple(missing_features)
        self.required_shims = tuple(required_shims)


class ConcurrencyLimitError(PluginHostError):
    def __init__(self, limit: int):
        super().__init__(
            ErrorCategory.CONCURRENCY_LIMIT,
            f"Maximum concurrent apps ({limit}) reached",
        )
        self.limit = limit


class AppRuntimeError(PluginHostError, RuntimeError):
    """Wraps an exception raised by app logic of a running instance."""

    def __init__(self, instance_id: str, app_name: str, original: BaseException):
        super().__init__(
            ErrorCategory.RUNTIME,
            f"App {app_name} ({instance_id}) failed: "
            f"{type(original).__name__}: {original}",
        )
        self.instance_id = instance_id
        self.app_name = app_name
        self.original_error = original


class HostNotInitializedError(PluginHostError):
    def __init__(self, message: str = "Plugin host is not initialized"):
        super().__init__(ErrorCategory.HOST_STATE, message)


class AdapterNotInitializedError(PluginHostError):
    def __init__(self, library: str):
        super().__init__(
            ErrorCategory.HOST_STATE, f"Adapter for {library} is not initialized"
        )
        self.library = library


class InputPendingError(PluginHostError):
    def __init__(self):
        super().__init__(ErrorCategory.INPUT, "An input request is already pending")


class InputCancelledError(PluginHostError):
    def __init__(self, reason: str = "Input request cancelled"):
        super().__init__(ErrorCategory.INPUT, reason)
