"""App definition data model: manifest, capabilities, commands, lifecycle."""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..adapters.negotiator import is_valid_range, parse_version
from ..errors import VersionParseError

if TYPE_CHECKING:
    from ..host.instance import CLIAppContext
    from .registry import AppRegistry

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


class CLIAppCapabilities(BaseModel):
    """What an app needs from its host."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    stdin: bool = False
    fullscreen: bool = False
    persistent_state: bool = False
    networking: bool = False
    file_system: bool = False
    custom_renderer: bool = False
    focus_management: bool = False

    def enabled(self) -> List[str]:
        return [name for name, value in self.model_dump().items() if value]


class CLIAppManifest(BaseModel):
    """Identity and library requirements of an app.

    ``name`` is the registry key. ``metadata`` carries plugin-specific data
    the host does not interpret.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    version: str = "1.0.0"
    library: str = "ink"
    library_version: str = ">=6.6.0"
    description: Optional[str] = None
    author: Optional[str] = None
    repository: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    license: Optional[str] = None
    entry_command: Optional[str] = None
    capabilities: Optional[CLIAppCapabilities] = None
    metadata: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError(
                f"Invalid app name {v!r}: use letters, digits, '.', '_' or '-'"
            )
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        try:
            parse_version(v)
        except VersionParseError as e:
            raise ValueError(str(e)) from None
        return v

    @field_validator("library_version")
    @classmethod
    def validate_library_version(cls, v: str) -> str:
        if not is_valid_range(v):
            raise ValueError(f"Invalid version range: {v!r}")
        return v

    @field_validator("metadata")
    @classmethod
    def freeze_metadata(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    @field_serializer("metadata")
    def dump_metadata(self, v: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(v)


class FlagType(str, Enum):
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"


ArgValidator = Callable[[str], Union[bool, str]]


@dataclass(frozen=True)
class CommandArg:
    name: str
    description: str = ""
    required: bool = False
    default: Optional[str] = None
    # Return True to accept, or an error message
    validate: Optional[ArgValidator] = None


@dataclass(frozen=True)
class CommandFlag:
    name: str
    type: FlagType = FlagType.BOOLEAN
    char: Optional[str] = None
    description: str = ""
    default: Union[str, bool, int, float, None] = None
    required: bool = False
    choices: Tuple[Union[str, int, float], ...] = ()


CommandHandler = Callable[
    [List[str], Dict[str, Any], "CLIAppContext"], Union[None, Awaitable[None]]
]


@dataclass(frozen=True)
class CLICommand:
    name: str
    description: str = ""
    handler: Optional[CommandHandler] = None
    aliases: Tuple[str, ...] = ()
    args: Tuple[CommandArg, ...] = ()
    flags: Tuple[CommandFlag, ...] = ()
    subcommands: Tuple["CLICommand", ...] = ()
    examples: Tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def matches(self, name: str) -> bool:
        return name == self.name or name in self.aliases

    def find_subcommand(self, name: str) -> Optional["CLICommand"]:
        for sub in self.subcommands:
            if sub.matches(name):
                return sub
        return None


@dataclass(frozen=True)
class CLIAppLifecycle:
    on_register: Optional[Callable[["AppRegistry"], None]] = None
    on_before_start: Optional[
        Callable[["CLIAppContext"], Union[None, Awaitable[None]]]
    ] = None
    on_exit: Optional[Callable[[int], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None
    on_suspend: Optional[Callable[[], None]] = None
    on_resume: Optional[Callable[[], None]] = None


@dataclass(frozen=True)
class CLIAppDefinition:
    """A built, immutable app: manifest + component + commands + hooks."""

    manifest: CLIAppManifest
    component: Callable[..., Any]
    commands: Tuple[CLICommand, ...] = ()
    lifecycle: CLIAppLifecycle = field(default_factory=CLIAppLifecycle)

    @property
    def name(self) -> str:
        return self.manifest.name

    def find_command(self, name: str) -> Optional[CLICommand]:
        for command in self.commands:
            if command.matches(name):
                return command
        return None

    def command_names(self) -> Sequence[str]:
        return [c.name for c in self.commands]
