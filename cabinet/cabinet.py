"""
The resolution dispatcher.

A :class:`Cabinet` owns an ordered registry of resolution strategies keyed
by file extension, plus the state the built-in strategies share (TypeScript
compiler options and host, the Node resolver's package.json cache). Each
context is independent; nothing is kept at module level.
"""

import os
from typing import Any, Callable, Dict, Optional, Tuple, Union

from cabinet.errors import CabinetError, ConfigurationError, ModuleResolutionError
from cabinet.helpers import is_relative_path, strip_loader
from cabinet.logger import CabinetLogger as logger
from cabinet.logger import set_level
from cabinet.lookups import (
    NodeResolver,
    WebpackResolver,
    amd_lookup,
    load_webpack_config,
    resolve_dependency_path,
    sass_lookup,
    stylus_lookup,
)
from cabinet.lookups.webpack import normalize_resolve_config
from cabinet.models import ModuleType, ResolutionRequest, ResolverEntry, Strategy
from cabinet.module_type import ModuleTypeClassifier
from cabinet.registry import ResolverRegistry
from cabinet.settings import CabinetSettings
from cabinet.typescript import TypeScriptEngine

JS_FAMILY = (".js", ".jsx", ".ts", ".tsx")


class Cabinet:
    """
    Maps a module specifier found in a source file to the file it refers to.

    Usage::

        cabinet = Cabinet()
        path = cabinet(partial="./utils", filename="src/app.js", directory="src")

    Unresolvable specifiers give ``""``. Only malformed configuration
    (:class:`ConfigurationError`) escapes from :meth:`resolve`.

    Explicitly given *settings* also set the level of the ``cabinet`` logger.
    """

    def __init__(
        self,
        settings: Optional[CabinetSettings] = None,
        *,
        ts_engine: Optional[TypeScriptEngine] = None,
        classifier: Optional[ModuleTypeClassifier] = None,
        node_resolver: Optional[NodeResolver] = None,
        generic_strategy: Optional[Strategy] = None,
    ):
        if settings is not None:
            set_level(settings.log_level)
        self.settings = settings or CabinetSettings()
        self._ts_engine = ts_engine
        self._classifier = classifier
        self._node_resolver = node_resolver
        self._generic_strategy = generic_strategy
        self._generic_entries: Dict[Tuple[str, ...], ResolverEntry] = {}

        self.registry = ResolverRegistry(self._default_entries())

    def _default_entries(self) -> list[ResolverEntry]:
        ts_extensions: Tuple[str, ...] = (".ts", ".tsx")
        if self.settings.ts_include_js:
            ts_extensions += (".js", ".jsx")
        return [
            ResolverEntry("TS", ts_extensions, self.ts_lookup),
            ResolverEntry("JS", JS_FAMILY, self.js_lookup),
            ResolverEntry("SASS", (".scss", ".sass", ".less"), self.sass_lookup),
            ResolverEntry("Stylus", (".styl",), self.stylus_lookup),
        ]

    # ------------------------------------------------------------------ #
    # collaborators, created on first use
    # ------------------------------------------------------------------ #
    @property
    def ts_engine(self) -> TypeScriptEngine:
        if self._ts_engine is None:
            self._ts_engine = TypeScriptEngine(self.settings)
        return self._ts_engine

    @property
    def classifier(self) -> ModuleTypeClassifier:
        if self._classifier is None:
            self._classifier = ModuleTypeClassifier()
        return self._classifier

    @property
    def node_resolver(self) -> NodeResolver:
        if self._node_resolver is None:
            self._node_resolver = NodeResolver()
        return self._node_resolver

    # ------------------------------------------------------------------ #
    # registry administration
    # ------------------------------------------------------------------ #
    def register(self, extension: str, strategy: Strategy) -> None:
        """Give *strategy* top priority for files ending in *extension*."""
        self.registry.register(extension, strategy)
        logger.debug("resolver registered", extension=extension)

    @property
    def supported_file_extensions(self) -> list[str]:
        return self.registry.supported_extensions

    def set_default(self, name: str) -> None:
        """Move the resolver called *name* to the front of the registry."""
        self.registry.promote(name)

    # ------------------------------------------------------------------ #
    # dispatch
    # ------------------------------------------------------------------ #
    def _generic_entry(self, extensions: Tuple[str, ...]) -> ResolverEntry:
        entry = self._generic_entries.get(extensions)
        if entry is None:
            entry = ResolverEntry("generic", extensions, self._generic_strategy or self.generic_lookup)
            self._generic_entries[extensions] = entry
        return entry

    def resolve(self, request: ResolutionRequest) -> str:
        """Absolute path of the file *request* refers to, or ``""``."""
        file_ext = os.path.splitext(request.filename)[1]
        extensions = tuple(dict.fromkeys([file_ext, *request.extensions]))

        candidates = self.registry.match(extensions) or [self._generic_entry(extensions)]
        logger.debug(
            "resolvers found",
            partial=request.partial,
            filename=request.filename,
            resolvers=[c.name for c in candidates],
        )

        for entry in candidates:
            try:
                result = entry.strategy(request)
            except ConfigurationError:
                raise
            except Exception as exc:
                logger.warning(
                    "resolver failed",
                    resolver=entry.name,
                    partial=request.partial,
                    filename=request.filename,
                    error=str(exc),
                )
                continue

            if result:
                logger.debug("resolved", resolver=entry.name, partial=request.partial, result=result)
                return result
            logger.debug("resolver returned nothing", resolver=entry.name, partial=request.partial)

        logger.debug("unresolved", partial=request.partial, filename=request.filename)
        return ""

    def __call__(self, **fields: Any) -> str:
        return self.resolve(ResolutionRequest(**fields))

    # ------------------------------------------------------------------ #
    # JavaScript family
    # ------------------------------------------------------------------ #
    def get_js_type(
        self,
        config: Any = None,
        webpack_config: Any = None,
        ast: Any = None,
        filename: Optional[str] = None,
    ) -> ModuleType:
        """Module system a JS file is written for, by config first and source second."""
        if config:
            return ModuleType.AMD
        if webpack_config:
            return ModuleType.WEBPACK
        if ast is not None:
            return self.classifier.from_source(ast)
        if filename is None:
            return ModuleType.NONE
        return self.classifier.from_file(filename)

    def js_lookup(self, request: ResolutionRequest) -> str:
        if not request.partial:
            return ""

        module_type = self.get_js_type(
            config=request.config,
            webpack_config=request.webpack_config,
            ast=request.ast,
            filename=request.filename,
        )
        logger.debug("js lookup", partial=request.partial, type=module_type)

        if module_type == ModuleType.AMD:
            return self.amd_lookup(request)
        if module_type == ModuleType.WEBPACK:
            return self.webpack_lookup(request)
        return self.commonjs_lookup(request)

    def ts_lookup(self, request: ResolutionRequest) -> str:
        return self.ts_engine.resolve(
            request.partial,
            request.filename,
            request.directory,
            request.ts_config,
            no_type_definitions=request.no_type_definitions,
            ts_config_path=request.ts_config_path,
        )

    def commonjs_lookup(self, request: ResolutionRequest) -> str:
        partial = request.partial
        if not partial:
            return ""

        # package specifiers must reach the resolver untouched
        if partial.startswith("."):
            partial = os.path.abspath(os.path.join(os.path.dirname(request.filename), partial))

        package_filter: Optional[Callable[[dict, str], dict]] = None
        entry = request.node_modules_config.entry if request.node_modules_config else None
        if entry:
            def package_filter(pkg: dict, _path: str) -> dict:
                pkg["main"] = pkg.get(entry) or pkg.get("main")
                return pkg

        module_directory: Tuple[str, ...] = ("node_modules",)
        if request.directory:
            module_directory += (request.directory,)
        try:
            result = self.node_resolver.resolve(
                partial,
                basedir=request.directory or os.path.dirname(request.filename),
                extensions=self.settings.commonjs_extensions,
                package_filter=package_filter,
                module_directory=module_directory,
            )
        except ModuleResolutionError as exc:
            logger.debug("commonjs lookup failed", partial=partial, error=exc.message)
            return ""
        return result or ""

    def webpack_lookup(self, request: ResolutionRequest) -> str:
        if not request.partial:
            return ""

        webpack_config: Union[str, dict, None] = request.webpack_config
        try:
            if isinstance(webpack_config, dict):
                resolve_config = normalize_resolve_config(webpack_config.get("resolve") or {})
            else:
                resolve_config = load_webpack_config(os.path.abspath(str(webpack_config)))
        except CabinetError as exc:
            logger.warning("webpack config could not be loaded", config=str(webpack_config), error=exc.message)
            return ""

        partial = strip_loader(request.partial)
        if is_relative_path(partial):
            lookup_path = os.path.dirname(request.filename)
        else:
            lookup_path = request.directory or os.path.dirname(request.filename)

        resolver = WebpackResolver(resolve_config, self.settings.webpack_extensions)
        try:
            return resolver.resolve(lookup_path, partial)
        except ModuleResolutionError as exc:
            logger.debug("webpack lookup failed", partial=partial, error=exc.message)
            return ""

    def amd_lookup(self, request: ResolutionRequest) -> str:
        try:
            return amd_lookup(
                request.partial,
                request.filename,
                directory=request.directory or None,
                config=request.config,
                config_path=request.config_path,
            )
        except ConfigurationError as exc:
            logger.warning("requirejs config could not be loaded", error=exc.message, config=exc.details.get("config_file"))
            return ""

    # ------------------------------------------------------------------ #
    # stylesheets & everything else
    # ------------------------------------------------------------------ #
    def sass_lookup(self, request: ResolutionRequest) -> str:
        return sass_lookup(request.partial, request.filename, request.directory)

    def stylus_lookup(self, request: ResolutionRequest) -> str:
        return stylus_lookup(request.partial, request.filename, request.directory)

    def generic_lookup(self, request: ResolutionRequest) -> str:
        return resolve_dependency_path(request.partial, request.filename, request.directory)


def resolve(
    partial: Optional[str],
    filename: str,
    directory: str = "",
    cabinet: Optional[Cabinet] = None,
    **fields: Any,
) -> str:
    """One-off resolution with a fresh (or the given) :class:`Cabinet`."""
    cabinet = cabinet or Cabinet()
    return cabinet(partial=partial, filename=filename, directory=directory, **fields)
