"""
webpack-style resolution driven by the ``resolve`` section of a webpack config.

Supported options: ``alias``, ``modules``, ``extensions``, ``mainFields``,
``mainFiles`` and the webpack 1 ``root`` / ``modulesDirectories`` pair.
"""

import json
import os
from typing import Any, List, Optional, Sequence, Tuple

from cabinet.errors import ConfigReadError, ModuleResolutionError
from cabinet.helpers import is_dir, is_file
from cabinet.js_config import read_module_exports

DEFAULT_EXTENSIONS = (".js", ".json", ".node")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def load_webpack_config(path: str) -> dict:
    """
    Load a webpack config file and return its (possibly empty) ``resolve`` section.

    Configs exporting a function are called without arguments; a config
    exporting a list uses its first entry.
    """
    loaded = read_module_exports(path)
    if callable(loaded):
        loaded = loaded()
    if isinstance(loaded, list):
        loaded = loaded[0] if loaded else {}
    if not isinstance(loaded, dict):
        raise ConfigReadError(path, "webpack config is not an object")
    return normalize_resolve_config(loaded.get("resolve") or {})


def normalize_resolve_config(resolve_config: dict) -> dict:
    """Fold webpack 1 ``root``/``modulesDirectories`` into ``modules``."""
    config = dict(resolve_config)
    if not config.get("modules") and (config.get("root") or config.get("modulesDirectories")):
        config["modules"] = _as_list(config.get("root")) + _as_list(config.get("modulesDirectories"))
    return config


class WebpackResolver:
    """Synchronous resolver built from a webpack ``resolve`` config."""

    def __init__(self, resolve_config: Optional[dict] = None,
                 default_extensions: Sequence[str] = DEFAULT_EXTENSIONS):
        config = normalize_resolve_config(resolve_config or {})
        self.aliases = self._parse_aliases(config.get("alias"))
        self.modules = [m for m in _as_list(config.get("modules")) if isinstance(m, str)] or ["node_modules"]
        self.extensions = [e for e in _as_list(config.get("extensions")) if isinstance(e, str) and e] \
            or list(default_extensions)
        self.main_fields = _as_list(config.get("mainFields")) or ["main"]
        self.main_files = _as_list(config.get("mainFiles")) or ["index"]

    @staticmethod
    def _parse_aliases(alias: Any) -> List[Tuple[str, Any, bool]]:
        entries: List[Tuple[str, Any, bool]] = []
        if isinstance(alias, dict):
            items = list(alias.items())
        elif isinstance(alias, list):
            items = [(a.get("name"), a.get("alias")) for a in alias if isinstance(a, dict)]
        else:
            items = []
        for name, target in items:
            if not isinstance(name, str):
                continue
            exact = name.endswith("$")
            entries.append((name[:-1] if exact else name, target, exact))
        return entries

    # ------------------------------------------------------------------ #
    def resolve(self, lookup_path: str, request: str) -> str:
        """Resolve *request* as if imported from a file inside *lookup_path*."""
        if not request:
            raise ModuleResolutionError(str(request), lookup_path)

        lookup_path = os.path.abspath(lookup_path)
        for candidate in self._apply_aliases(request):
            if candidate is False:
                break
            found = self._resolve_request(lookup_path, candidate)
            if found:
                return os.path.abspath(found)
        raise ModuleResolutionError(request, lookup_path)

    def _apply_aliases(self, request: str) -> List[Any]:
        for name, target, exact in self.aliases:
            if request == name or (not exact and request.startswith(name + "/")):
                rest = request[len(name):]
                targets = _as_list(target) if target is not False else [False]
                return [t if t is False else t + rest for t in targets if t is False or isinstance(t, str)]
        return [request]

    def _resolve_request(self, lookup_path: str, request: str) -> Optional[str]:
        if os.path.isabs(request):
            return self._load(request)
        if request.startswith(("./", "../")) or request in (".", ".."):
            return self._load(os.path.normpath(os.path.join(lookup_path, request)))
        return self._load_module(lookup_path, request)

    def _load(self, target: str) -> Optional[str]:
        return self._load_as_file(target) or self._load_as_directory(target)

    def _load_as_file(self, target: str) -> Optional[str]:
        if is_file(target):
            return target
        for ext in self.extensions:
            if is_file(target + ext):
                return target + ext
        return None

    def _load_as_directory(self, target: str) -> Optional[str]:
        if not is_dir(target):
            return None
        pkg_path = os.path.join(target, "package.json")
        if is_file(pkg_path):
            try:
                with open(pkg_path, "r", encoding="utf-8") as f:
                    pkg = json.load(f)
            except (ValueError, OSError):
                pkg = {}
            for field_name in self.main_fields:
                names = field_name if isinstance(field_name, list) else [field_name]
                value: Any = pkg
                for name in names:
                    value = value.get(name) if isinstance(value, dict) else None
                if isinstance(value, str) and value:
                    main = os.path.normpath(os.path.join(target, value))
                    found = self._load_as_file(main) or (
                        self._load_as_directory(main) if main != target else None
                    )
                    if found:
                        return found
        for main_file in self.main_files:
            found = self._load_as_file(os.path.join(target, main_file))
            if found:
                return found
        return None

    def _module_directories(self, lookup_path: str) -> List[str]:
        dirs: List[str] = []
        for module in self.modules:
            if os.path.isabs(module):
                dirs.append(module)
                continue
            current = lookup_path
            while True:
                if os.path.basename(current) != module:
                    dirs.append(os.path.join(current, module))
                parent = os.path.dirname(current)
                if parent == current:
                    break
                current = parent
        return dirs

    def _load_module(self, lookup_path: str, request: str) -> Optional[str]:
        for directory in self._module_directories(lookup_path):
            if not is_dir(directory):
                continue
            found = self._load(os.path.join(directory, request))
            if found:
                return found
        return None
