"""
tsconfig.json ``compilerOptions`` → :class:`CompilerOptions`.

Only the options that influence module resolution are kept. Paths are made
absolute against the config's base path, enum names are matched
case-insensitively and unknown options are ignored.
"""

import os
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from cabinet.errors import ConfigReadError
from cabinet.helpers import parse_jsonc
from cabinet.logger import CabinetLogger as logger


class ModuleKind(IntEnum):
    NONE = 0
    COMMONJS = 1
    AMD = 2
    UMD = 3
    SYSTEM = 4
    ES2015 = 5
    ES2020 = 6
    ES2022 = 7
    ESNEXT = 99
    NODE16 = 100
    NODENEXT = 199
    PRESERVE = 200


class ModuleResolutionKind(str, Enum):
    CLASSIC = "classic"
    NODE10 = "node10"
    NODE16 = "node16"
    NODENEXT = "nodenext"
    BUNDLER = "bundler"


_MODULE_KIND_NAMES: Dict[str, ModuleKind] = {
    "none": ModuleKind.NONE,
    "commonjs": ModuleKind.COMMONJS,
    "amd": ModuleKind.AMD,
    "umd": ModuleKind.UMD,
    "system": ModuleKind.SYSTEM,
    "es6": ModuleKind.ES2015,
    "es2015": ModuleKind.ES2015,
    "es2020": ModuleKind.ES2020,
    "es2022": ModuleKind.ES2022,
    "esnext": ModuleKind.ESNEXT,
    "node16": ModuleKind.NODE16,
    "nodenext": ModuleKind.NODENEXT,
    "preserve": ModuleKind.PRESERVE,
}

_RESOLUTION_KIND_NAMES: Dict[str, ModuleResolutionKind] = {
    "classic": ModuleResolutionKind.CLASSIC,
    "node": ModuleResolutionKind.NODE10,
    "node10": ModuleResolutionKind.NODE10,
    "node16": ModuleResolutionKind.NODE16,
    "nodenext": ModuleResolutionKind.NODENEXT,
    "bundler": ModuleResolutionKind.BUNDLER,
}


class CompilerOptions(BaseModel):
    """Resolution-relevant subset of the TypeScript compiler options."""

    model_config = ConfigDict(frozen=True)

    module: Optional[ModuleKind] = None
    module_resolution: Optional[ModuleResolutionKind] = None
    base_url: Optional[str] = None
    paths: Optional[Dict[str, List[str]]] = None
    # directory `paths` are relative to when there is no baseUrl
    paths_base_path: Optional[str] = None
    root_dirs: Optional[List[str]] = None
    resolve_json_module: Optional[bool] = None
    module_suffixes: Optional[List[str]] = None

    def with_default_module(self, module: ModuleKind) -> "CompilerOptions":
        if self.module is not None:
            return self
        return self.model_copy(update={"module": module})

    def get_module_resolution_kind(self) -> ModuleResolutionKind:
        if self.module_resolution is not None:
            return self.module_resolution
        if self.module == ModuleKind.COMMONJS:
            return ModuleResolutionKind.NODE10
        if self.module == ModuleKind.NODE16:
            return ModuleResolutionKind.NODE16
        if self.module == ModuleKind.NODENEXT:
            return ModuleResolutionKind.NODENEXT
        if self.module == ModuleKind.PRESERVE:
            return ModuleResolutionKind.BUNDLER
        return ModuleResolutionKind.CLASSIC


def _enum_option(name: str, raw: Any, table: Dict[str, Any]) -> Any:
    if isinstance(raw, str) and raw.lower() in table:
        return table[raw.lower()]
    logger.warning("invalid compiler option ignored", option=name, value=raw)
    return None


def _bool_option(name: str, raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    logger.warning("invalid compiler option ignored", option=name, value=raw)
    return None


def _path_list(name: str, raw: Any, base_path: str) -> Optional[List[str]]:
    if not isinstance(raw, list) or not all(isinstance(p, str) for p in raw):
        logger.warning("invalid compiler option ignored", option=name, value=raw)
        return None
    return [os.path.normpath(os.path.join(base_path, p)) for p in raw]


def convert_compiler_options(raw: Any, base_path: str) -> CompilerOptions:
    """Normalise a raw ``compilerOptions`` object against *base_path*."""
    if raw is None:
        return CompilerOptions()
    if not isinstance(raw, dict):
        logger.warning("compilerOptions is not an object", value=raw)
        return CompilerOptions()

    base_path = os.path.abspath(base_path)
    values: Dict[str, Any] = {}

    for key, value in raw.items():
        if key == "module":
            values["module"] = _enum_option(key, value, _MODULE_KIND_NAMES)
        elif key == "moduleResolution":
            values["module_resolution"] = _enum_option(key, value, _RESOLUTION_KIND_NAMES)
        elif key == "baseUrl":
            if isinstance(value, str):
                values["base_url"] = os.path.normpath(os.path.join(base_path, value))
        elif key == "paths":
            if isinstance(value, dict):
                values["paths"] = {
                    k: [t for t in v if isinstance(t, str)]
                    for k, v in value.items()
                    if isinstance(v, list)
                }
                values["paths_base_path"] = base_path
        elif key == "rootDirs":
            values["root_dirs"] = _path_list(key, value, base_path)
        elif key == "resolveJsonModule":
            values["resolve_json_module"] = _bool_option(key, value)
        elif key == "moduleSuffixes":
            if isinstance(value, list) and all(isinstance(s, str) for s in value):
                values["module_suffixes"] = value

    return CompilerOptions(**{k: v for k, v in values.items() if v is not None})


def read_config_file(path: str) -> dict:
    """Read a tsconfig file; any read or parse problem is a :class:`ConfigReadError`."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(path, str(exc)) from exc
    try:
        config = parse_jsonc(text)
    except ValueError as exc:
        raise ConfigReadError(path, str(exc)) from exc
    if not isinstance(config, dict):
        raise ConfigReadError(path, "tsconfig root is not an object")
    return config
