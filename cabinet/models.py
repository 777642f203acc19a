from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from pydantic import BaseModel

from cabinet.errors import ConfigTypeError

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ModuleType(str, Enum):
    AMD = "amd"
    COMMONJS = "commonjs"
    ES6 = "es6"
    WEBPACK = "webpack"
    # No module syntax detected
    NONE = "none"


# ---------------------------------------------------------------------------
# Config sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class InlineConfig:
    """An already-parsed configuration object."""
    value: dict


@dataclass(frozen=True)
class ConfigFile:
    """A configuration that still has to be read from disk."""
    path: str


ConfigSource = Union[InlineConfig, ConfigFile, None]


def config_source(raw: Any) -> ConfigSource:
    """
    Turn a raw config argument into a :data:`ConfigSource`.

    ``None`` means absent, a ``dict`` is used inline and a ``str`` (or
    ``os.PathLike``) is a file path. Already tagged values pass through.
    """
    if raw is None or isinstance(raw, (InlineConfig, ConfigFile)):
        return raw
    if isinstance(raw, dict):
        return InlineConfig(raw)
    if isinstance(raw, str):
        return ConfigFile(raw)
    if hasattr(raw, "__fspath__"):
        return ConfigFile(str(raw.__fspath__()))
    raise ConfigTypeError(raw)


class NodeModulesConfig(BaseModel):
    # package.json field used instead of "main" when present
    entry: Optional[str] = None


# ---------------------------------------------------------------------------
# Requests & registry entries
# ---------------------------------------------------------------------------


@dataclass
class ResolutionRequest:
    """Everything a resolution strategy may look at."""
    partial: Optional[str]
    filename: str
    directory: str = ""
    extensions: Sequence[str] = ()
    config: Any = None  # AMD / RequireJS config, dict or path; checked by the AMD lookup
    config_path: Optional[str] = None
    node_modules_config: Optional[NodeModulesConfig] = None
    webpack_config: Optional[Union[str, dict]] = None
    ts_config: ConfigSource = None
    ts_config_path: Optional[str] = None
    ast: Any = None  # tree_sitter Tree or Node
    no_type_definitions: bool = False

    def __post_init__(self) -> None:
        if not self.filename:
            raise ValueError("filename must be given")
        self.filename = str(self.filename)
        self.directory = str(self.directory or "")
        self.ts_config = config_source(self.ts_config)
        if isinstance(self.node_modules_config, dict):
            self.node_modules_config = NodeModulesConfig(**self.node_modules_config)


Strategy = Callable[[ResolutionRequest], Optional[str]]


@dataclass
class ResolverEntry:
    name: str
    extensions: tuple[str, ...]
    strategy: Strategy = field(repr=False)

    def handles(self, extensions: Sequence[str]) -> bool:
        return any(ext in self.extensions for ext in extensions)
