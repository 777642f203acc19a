import os
from typing import Any, Callable, Dict, Optional, Tuple

from cabinet.errors import ConfigTypeError
from cabinet.logger import CabinetLogger as logger
from cabinet.models import ConfigFile, ConfigSource, InlineConfig, config_source
from cabinet.settings import CabinetSettings
from cabinet.typescript.host import CompilerHost, ModuleResolutionCache
from cabinet.typescript.options import (
    CompilerOptions,
    ModuleKind,
    convert_compiler_options,
    read_config_file,
)
from cabinet.typescript.resolution import (
    ResolvedModuleWithFailedLookupLocations,
    is_declaration_file_name,
    resolve_js_module,
    resolve_module_name,
)

ResolveModuleName = Callable[
    [str, str, CompilerOptions, CompilerHost, Optional[ModuleResolutionCache]],
    ResolvedModuleWithFailedLookupLocations,
]

# Files without a configured module kind resolve as AMD, which selects the
# Classic strategy. Kept for compatibility with existing callers.
DEFAULT_MODULE_KIND = ModuleKind.AMD

_DECLARATION_SUFFIX = ".d.ts"


class TypeScriptEngine:
    """
    Resolves TypeScript specifiers to files.

    Holds the compiler-options cache (keyed by tsconfig identity) and a
    compiler host + resolution cache bound to one project directory. The
    host state is rebuilt whenever a lookup comes from another directory.
    """

    def __init__(
        self,
        settings: Optional[CabinetSettings] = None,
        resolve_module_name: ResolveModuleName = resolve_module_name,
        resolve_js_module: Callable[[str, str, CompilerHost], Optional[str]] = resolve_js_module,
    ):
        self.settings = settings or CabinetSettings()
        self._resolve_module_name = resolve_module_name
        self._resolve_js_module = resolve_js_module

        self._options_cache: Dict[Tuple[str, Any], Tuple[Any, CompilerOptions]] = {}

        self.host: Optional[CompilerHost] = None
        self.resolution_cache: Optional[ModuleResolutionCache] = None
        self.cached_directory: Optional[str] = None

    # ------------------------------------------------------------------ #
    # compiler options
    # ------------------------------------------------------------------ #
    def _options_key(self, ts_config: ConfigSource, ts_config_path: Optional[str]) -> Tuple[str, Any]:
        if ts_config is None:
            return "none", None
        if isinstance(ts_config, InlineConfig):
            return "inline", (id(ts_config.value), ts_config_path)
        return "file", ts_config.path

    def get_compiler_options(
        self, ts_config: Any, ts_config_path: Optional[str] = None
    ) -> CompilerOptions:
        """Compiler options for *ts_config*, computed once per config identity."""
        ts_config = config_source(ts_config)
        key = self._options_key(ts_config, ts_config_path)
        cached = self._options_cache.get(key)
        if cached is not None:
            return cached[1]

        if ts_config is None:
            options = CompilerOptions()
            anchor: Any = None
        elif isinstance(ts_config, ConfigFile):
            path = os.path.abspath(ts_config.path)
            raw = read_config_file(path)
            options = convert_compiler_options(raw.get("compilerOptions"), os.path.dirname(path))
            anchor = ts_config.path
        elif isinstance(ts_config, InlineConfig):
            base_path = os.path.dirname(os.path.abspath(ts_config_path)) if ts_config_path else os.getcwd()
            options = convert_compiler_options(ts_config.value.get("compilerOptions"), base_path)
            # keeps the dict alive so its id() cannot be reused
            anchor = ts_config.value
        else:
            raise ConfigTypeError(ts_config)

        options = options.with_default_module(DEFAULT_MODULE_KIND)
        logger.debug(
            "compiler options computed",
            source=key[0],
            options=options.model_dump(mode="json", exclude_none=True),
        )
        self._options_cache[key] = (anchor, options)
        return options

    # ------------------------------------------------------------------ #
    # host state
    # ------------------------------------------------------------------ #
    def _ensure_host(self, directory: str) -> CompilerHost:
        if (
            self.host is None
            or self.cached_directory != directory
            or self.settings.disable_ts_cache
        ):
            logger.debug("rebuilding compiler host", directory=directory)
            self.host = CompilerHost(directory or None)
            self.resolution_cache = ModuleResolutionCache(self.host.current_directory, self.host)
            self.cached_directory = directory
        return self.host

    # ------------------------------------------------------------------ #
    # lookup
    # ------------------------------------------------------------------ #
    def resolve(
        self,
        partial: Optional[str],
        filename: str,
        directory: str,
        ts_config: Any = None,
        no_type_definitions: bool = False,
        ts_config_path: Optional[str] = None,
    ) -> str:
        if not partial:
            return ""

        options = self.get_compiler_options(ts_config, ts_config_path)
        host = self._ensure_host(directory)

        lookup = self._resolve_module_name(partial, filename, options, host, self.resolution_cache)
        resolved = lookup.resolved_module
        result = ""

        if resolved is not None:
            result = resolved.resolved_file_name
            if no_type_definitions and is_declaration_file_name(result):
                js_file = self._resolve_js_module(partial, os.path.dirname(filename), host)
                if js_file:
                    result = js_file
        else:
            # non-code assets (./logo.svg) only show up as failed declaration probes
            for location in lookup.failed_lookup_locations:
                if not location.endswith(_DECLARATION_SUFFIX):
                    continue
                candidate = location[: -len(_DECLARATION_SUFFIX)]
                if host.file_exists(candidate):
                    result = candidate
                    break

        logger.debug("typescript lookup", partial=partial, filename=filename, result=result)
        return os.path.abspath(result) if result else ""
