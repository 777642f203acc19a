"""
TypeScript module-name resolution.

Mirrors what ``ts.resolveModuleName`` does for the Classic, Node10, Node16,
NodeNext and Bundler strategies. Every probed file that does not exist is
recorded in ``failed_lookup_locations``; callers use that list to find
non-code assets (``./logo.svg``) the compiler itself never resolves.
"""

import os
import re
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from cabinet.typescript.host import CompilerHost, ModuleResolutionCache
from cabinet.typescript.options import CompilerOptions, ModuleResolutionKind


class Extensions(IntFlag):
    TYPESCRIPT = 1
    DECLARATION = 2
    JAVASCRIPT = 4
    JSON = 8


_EXTENSION_GROUPS = {
    Extensions.TYPESCRIPT: (".ts", ".tsx", ".mts", ".cts"),
    Extensions.DECLARATION: (".d.ts", ".d.mts", ".d.cts"),
    Extensions.JAVASCRIPT: (".js", ".jsx", ".mjs", ".cjs"),
    Extensions.JSON: (".json",),
}

# longest first, so ".d.ts" wins over ".ts"
_KNOWN_EXTENSIONS = sorted(
    {ext for group in _EXTENSION_GROUPS.values() for ext in group},
    key=len,
    reverse=True,
)

_RELATIVE_RE = re.compile(r"^\.\.?($|[\\/])")

PathAndExtension = Tuple[str, str]


@dataclass
class ResolvedModule:
    resolved_file_name: str
    extension: str
    is_external_library_import: bool = False


@dataclass
class ResolvedModuleWithFailedLookupLocations:
    resolved_module: Optional[ResolvedModule]
    failed_lookup_locations: List[str] = field(default_factory=list)


def path_is_relative(name: str) -> bool:
    return bool(_RELATIVE_RE.match(name))


def is_external_module_name_relative(name: str) -> bool:
    return path_is_relative(name) or os.path.isabs(name)


def extension_of(path: str) -> str:
    """Resolution extension of *path* (``.d.ts`` rather than ``.ts``)."""
    lowered = path.lower()
    for ext in _KNOWN_EXTENSIONS:
        if lowered.endswith(ext):
            return ext
    return os.path.splitext(path)[1]


def is_declaration_file_name(path: str) -> bool:
    return extension_of(path) in _EXTENSION_GROUPS[Extensions.DECLARATION]


def _extension_allowed(extensions: Extensions, ext: str) -> bool:
    return any(extensions & flag and ext in group for flag, group in _EXTENSION_GROUPS.items())


def _ancestors(directory: str) -> Iterator[str]:
    current = directory
    while True:
        yield current
        parent = os.path.dirname(current)
        if parent == current:
            return
        current = parent


def _mangle_scoped_package_name(name: str) -> str:
    if name.startswith("@") and "/" in name:
        scope, rest = name[1:].split("/", 1)
        return f"{scope}__{rest}"
    return name


def _split_package_name(name: str) -> Tuple[str, str]:
    parts = name.split("/")
    count = 2 if name.startswith("@") and len(parts) > 1 else 1
    return "/".join(parts[:count]), "/".join(parts[count:])


def _match_pattern_or_exact(patterns: Sequence[str], candidate: str) -> Optional[Tuple[str, Optional[str]]]:
    """Exact key first, otherwise the ``*`` pattern with the longest prefix."""
    if candidate in patterns:
        return candidate, None
    best: Optional[Tuple[str, str]] = None
    for pattern in patterns:
        if pattern.count("*") != 1:
            continue
        prefix, suffix = pattern.split("*")
        if (len(candidate) >= len(prefix) + len(suffix)
                and candidate.startswith(prefix) and candidate.endswith(suffix)):
            if best is None or len(prefix) > len(best[1]):
                best = (pattern, prefix)
    if best is None:
        return None
    pattern, prefix = best
    suffix = pattern.split("*")[1]
    return pattern, candidate[len(prefix):len(candidate) - len(suffix)]


Loader = Callable[[Extensions, str, bool], Optional[PathAndExtension]]


class _ResolutionState:
    def __init__(
        self,
        options: CompilerOptions,
        host: CompilerHost,
        cache: Optional[ModuleResolutionCache],
        kind: ModuleResolutionKind,
        passes: Sequence[Extensions],
    ):
        self.options = options
        self.host = host
        self.cache = cache
        self.kind = kind
        self.passes = passes
        self.failed_lookup_locations: List[str] = []
        self.use_exports = kind in (
            ModuleResolutionKind.NODE16,
            ModuleResolutionKind.NODENEXT,
            ModuleResolutionKind.BUNDLER,
        )

    # ------------------------------------------------------------------ #
    # primitives
    # ------------------------------------------------------------------ #
    def try_file(self, path: str, only_record_failures: bool) -> Optional[str]:
        if not only_record_failures and self.host.file_exists(path):
            return path
        self.failed_lookup_locations.append(path)
        return None

    def _try_extension(self, base: str, ext: str, only_record_failures: bool) -> Optional[PathAndExtension]:
        for suffix in self.options.module_suffixes or [""]:
            found = self.try_file(base + suffix + ext, only_record_failures)
            if found:
                return found, ext
        return None

    def _package_json(self, directory: str) -> Optional[dict]:
        if self.cache is not None:
            return self.cache.get_package_json(directory)
        return ModuleResolutionCache(directory, self.host).get_package_json(directory)

    def _conditions(self, extensions: Extensions) -> Tuple[str, ...]:
        if self.kind == ModuleResolutionKind.BUNDLER:
            conditions: Tuple[str, ...] = ("import",)
        else:
            conditions = ("node", "import", "require")
        if extensions & Extensions.DECLARATION:
            conditions = ("types",) + conditions
        return conditions

    # ------------------------------------------------------------------ #
    # files
    # ------------------------------------------------------------------ #
    def _try_adding_extensions(
        self, candidate: str, extensions: Extensions, original_ext: str, only_record_failures: bool
    ) -> Optional[PathAndExtension]:
        if original_ext in (".mjs", ".mts", ".d.mts"):
            order = [(Extensions.TYPESCRIPT, ".mts"), (Extensions.DECLARATION, ".d.mts"),
                     (Extensions.JAVASCRIPT, ".mjs")]
        elif original_ext in (".cjs", ".cts", ".d.cts"):
            order = [(Extensions.TYPESCRIPT, ".cts"), (Extensions.DECLARATION, ".d.cts"),
                     (Extensions.JAVASCRIPT, ".cjs")]
        elif original_ext == ".json":
            order = [(Extensions.DECLARATION, ".d.json.ts"), (Extensions.JSON, ".json")]
        elif original_ext in (".tsx", ".jsx"):
            order = [(Extensions.TYPESCRIPT, ".tsx"), (Extensions.TYPESCRIPT, ".ts"),
                     (Extensions.DECLARATION, ".d.ts"), (Extensions.JAVASCRIPT, ".jsx"),
                     (Extensions.JAVASCRIPT, ".js")]
        elif original_ext in ("", ".ts", ".d.ts", ".js"):
            order = [(Extensions.TYPESCRIPT, ".ts"), (Extensions.TYPESCRIPT, ".tsx"),
                     (Extensions.DECLARATION, ".d.ts"), (Extensions.JAVASCRIPT, ".js"),
                     (Extensions.JAVASCRIPT, ".jsx")]
        else:
            # arbitrary extension, e.g. ./styles.css -> ./styles.d.css.ts
            order = [(Extensions.DECLARATION, f".d{original_ext}.ts")]

        for flag, ext in order:
            if extensions & flag:
                found = self._try_extension(candidate, ext, only_record_failures)
                if found:
                    return found
        return None

    def _load_from_file_no_implicit_extensions(
        self, extensions: Extensions, candidate: str, only_record_failures: bool
    ) -> Optional[PathAndExtension]:
        if "." not in os.path.basename(candidate):
            return None
        ext = extension_of(candidate)
        if ext not in _KNOWN_EXTENSIONS:
            ext = os.path.splitext(candidate)[1]
        extensionless = candidate[: len(candidate) - len(ext)]
        return self._try_adding_extensions(extensionless, extensions, ext, only_record_failures)

    def load_module_from_file(
        self, extensions: Extensions, candidate: str, only_record_failures: bool
    ) -> Optional[PathAndExtension]:
        return (self._load_from_file_no_implicit_extensions(extensions, candidate, only_record_failures)
                or self._try_adding_extensions(candidate, extensions, "", only_record_failures))

    # ------------------------------------------------------------------ #
    # directories & packages
    # ------------------------------------------------------------------ #
    def _load_package_entry(
        self, extensions: Extensions, path: str
    ) -> Optional[PathAndExtension]:
        ext = extension_of(path)
        if _extension_allowed(extensions, ext) and self.try_file(path, False):
            return path, ext
        only_record = not self.host.directory_exists(os.path.dirname(path))
        found = self.load_module_from_file(extensions, path, only_record)
        if found:
            return found
        if self.host.directory_exists(path):
            return self.load_module_from_file(extensions, os.path.join(path, "index"), False)
        return None

    def load_node_module_from_directory(
        self, extensions: Extensions, candidate: str, only_record_failures: bool
    ) -> Optional[PathAndExtension]:
        pkg = None if only_record_failures else self._package_json(candidate)
        if pkg:
            fields: Tuple[str, ...] = ("main",)
            if extensions & (Extensions.TYPESCRIPT | Extensions.DECLARATION):
                fields = ("typings", "types", "main")
            for field_name in fields:
                value = pkg.get(field_name)
                if isinstance(value, str) and value:
                    found = self._load_package_entry(
                        extensions, os.path.normpath(os.path.join(candidate, value))
                    )
                    if found:
                        return found
        return self.load_module_from_file(extensions, os.path.join(candidate, "index"), only_record_failures)

    def _load_exported_file(self, extensions: Extensions, path: str) -> Optional[PathAndExtension]:
        ext = extension_of(path)
        if _extension_allowed(extensions, ext) and self.try_file(path, False):
            return path, ext
        return self._load_from_file_no_implicit_extensions(extensions, path, False)

    def _load_export_target(
        self, extensions: Extensions, package_dir: str, target, star: Optional[str]
    ) -> Optional[PathAndExtension]:
        if isinstance(target, str):
            if star is not None:
                target = target.replace("*", star)
            if not target.startswith("./"):
                return None
            return self._load_exported_file(extensions, os.path.normpath(os.path.join(package_dir, target)))
        if isinstance(target, list):
            for item in target:
                found = self._load_export_target(extensions, package_dir, item, star)
                if found:
                    return found
            return None
        if isinstance(target, dict):
            conditions = self._conditions(extensions)
            for condition, sub_target in target.items():
                if condition == "default" or condition in conditions:
                    found = self._load_export_target(extensions, package_dir, sub_target, star)
                    if found:
                        return found
        return None

    def _load_from_exports(
        self, extensions: Extensions, package_dir: str, exports, subpath: str
    ) -> Optional[PathAndExtension]:
        if not isinstance(exports, dict) or not any(k.startswith(".") for k in exports):
            exports = {".": exports}
        if subpath in exports:
            return self._load_export_target(extensions, package_dir, exports[subpath], None)
        matched = _match_pattern_or_exact([k for k in exports if "*" in k], subpath)
        if matched is None:
            return None
        key, star = matched
        return self._load_export_target(extensions, package_dir, exports[key], star)

    def _load_from_specific_node_modules(
        self, extensions: Extensions, name: str, node_modules: str, exists: bool
    ) -> Optional[PathAndExtension]:
        candidate = os.path.normpath(os.path.join(node_modules, name))

        if self.use_exports and exists:
            package_name, rest = _split_package_name(name)
            package_dir = os.path.join(node_modules, package_name)
            pkg = self._package_json(package_dir)
            if pkg and "exports" in pkg:
                subpath = "./" + rest if rest else "."
                return self._load_from_exports(extensions, package_dir, pkg["exports"], subpath)

        found = self.load_module_from_file(extensions, candidate, not exists)
        if found:
            return found
        return self.load_node_module_from_directory(
            extensions, candidate, not exists or not self.host.directory_exists(candidate)
        )

    def _load_from_nearest_node_modules(
        self, extensions: Extensions, name: str, directory: str, types_scope_only: bool = False
    ) -> Optional[PathAndExtension]:
        for ancestor in _ancestors(directory):
            if os.path.basename(ancestor) == "node_modules":
                continue
            node_modules = os.path.join(ancestor, "node_modules")
            exists = self.host.directory_exists(node_modules)
            if not types_scope_only:
                found = self._load_from_specific_node_modules(extensions, name, node_modules, exists)
                if found:
                    return found
            if extensions & Extensions.DECLARATION:
                at_types = os.path.join(node_modules, "@types")
                found = self._load_from_specific_node_modules(
                    Extensions.DECLARATION,
                    _mangle_scoped_package_name(name),
                    at_types,
                    exists and self.host.directory_exists(at_types),
                )
                if found:
                    return found
        return None

    # ------------------------------------------------------------------ #
    # optional settings: paths, baseUrl, rootDirs
    # ------------------------------------------------------------------ #
    def _try_paths(self, extensions: Extensions, name: str, loader: Loader) -> Optional[PathAndExtension]:
        paths = self.options.paths
        if not paths or path_is_relative(name):
            return None
        matched = _match_pattern_or_exact(list(paths), name)
        if matched is None:
            return None
        key, star = matched
        base = self.options.base_url or self.options.paths_base_path or self.host.current_directory
        for substitution in paths[key]:
            path = substitution.replace("*", star) if star is not None else substitution
            candidate = os.path.normpath(os.path.join(base, path))
            ext = extension_of(candidate)
            if _extension_allowed(extensions, ext):
                found = self.try_file(candidate, False)
                if found:
                    return found, ext
            found = loader(extensions, candidate, not self.host.directory_exists(os.path.dirname(candidate)))
            if found:
                return found
        return None

    def _try_root_dirs(
        self, extensions: Extensions, name: str, containing_dir: str, loader: Loader
    ) -> Optional[PathAndExtension]:
        root_dirs = self.options.root_dirs
        if not root_dirs:
            return None
        candidate = os.path.normpath(os.path.join(containing_dir, name))
        matched_root: Optional[str] = None
        for root in root_dirs:
            if (candidate == root or candidate.startswith(root.rstrip(os.sep) + os.sep)) and (
                matched_root is None or len(root) > len(matched_root)
            ):
                matched_root = root
        if matched_root is None:
            return None

        suffix = candidate[len(matched_root):].lstrip(os.sep)
        found = loader(extensions, candidate, not self.host.directory_exists(os.path.dirname(candidate)))
        if found:
            return found
        for root in root_dirs:
            if root == matched_root:
                continue
            other = os.path.normpath(os.path.join(root, suffix))
            found = loader(extensions, other, not self.host.directory_exists(os.path.dirname(other)))
            if found:
                return found
        return None

    def _try_optional_settings(
        self, extensions: Extensions, name: str, containing_dir: str, loader: Loader
    ) -> Optional[PathAndExtension]:
        found = self._try_paths(extensions, name, loader)
        if found:
            return found
        if not is_external_module_name_relative(name):
            if not self.options.base_url:
                return None
            candidate = os.path.normpath(os.path.join(self.options.base_url, name))
            return loader(extensions, candidate, not self.host.directory_exists(os.path.dirname(candidate)))
        return self._try_root_dirs(extensions, name, containing_dir, loader)

    # ------------------------------------------------------------------ #
    # strategies
    # ------------------------------------------------------------------ #
    def node_load_by_relative_name(
        self, extensions: Extensions, candidate: str, only_record_failures: bool
    ) -> Optional[PathAndExtension]:
        if not candidate.endswith(os.sep):
            if not only_record_failures and not self.host.directory_exists(os.path.dirname(candidate)):
                only_record_failures = True
            found = self.load_module_from_file(extensions, candidate, only_record_failures)
            if found:
                return found
        candidate = candidate.rstrip(os.sep) or os.sep
        if not only_record_failures and not self.host.directory_exists(candidate):
            only_record_failures = True
        return self.load_node_module_from_directory(extensions, candidate, only_record_failures)

    def node(self, name: str, containing_dir: str) -> Optional[PathAndExtension]:
        for extensions in self.passes:
            found = self._try_optional_settings(extensions, name, containing_dir, self.node_load_by_relative_name)
            if found:
                return found
            if not is_external_module_name_relative(name):
                found = self._load_from_nearest_node_modules(extensions, name, containing_dir)
            else:
                candidate = os.path.normpath(os.path.join(containing_dir, name))
                if name.endswith(("/", "\\")):
                    candidate += os.sep
                found = self.node_load_by_relative_name(extensions, candidate, False)
            if found:
                return found
        return None

    def classic(self, name: str, containing_dir: str) -> Optional[PathAndExtension]:
        for extensions in self.passes:
            found = self._try_optional_settings(extensions, name, containing_dir, self.load_module_from_file)
            if found:
                return found
            if not is_external_module_name_relative(name):
                for ancestor in _ancestors(containing_dir):
                    found = self.load_module_from_file(
                        extensions, os.path.normpath(os.path.join(ancestor, name)), False
                    )
                    if found:
                        return found
                if extensions & Extensions.DECLARATION:
                    found = self._load_from_nearest_node_modules(
                        Extensions.DECLARATION, name, containing_dir, types_scope_only=True
                    )
            else:
                found = self.load_module_from_file(
                    extensions, os.path.normpath(os.path.join(containing_dir, name)), False
                )
            if found:
                return found
        return None


def _to_resolved_module(found: Optional[PathAndExtension]) -> Optional[ResolvedModule]:
    if found is None:
        return None
    path, ext = found
    return ResolvedModule(
        resolved_file_name=os.path.normpath(path),
        extension=ext,
        is_external_library_import="node_modules" in path.split(os.sep),
    )


def resolve_module_name(
    module_name: str,
    containing_file: str,
    options: CompilerOptions,
    host: CompilerHost,
    cache: Optional[ModuleResolutionCache] = None,
) -> ResolvedModuleWithFailedLookupLocations:
    """Resolve *module_name* as imported from *containing_file*."""
    containing_dir = os.path.dirname(os.path.abspath(containing_file))
    kind = options.get_module_resolution_kind()

    if cache is not None:
        cached = cache.get(containing_dir, module_name, kind.value)
        if cached is not None:
            return cached

    js_pass = Extensions.JAVASCRIPT | (Extensions.JSON if options.resolve_json_module else 0)
    state = _ResolutionState(
        options, host, cache, kind,
        passes=(Extensions.TYPESCRIPT | Extensions.DECLARATION, js_pass),
    )
    if kind == ModuleResolutionKind.CLASSIC:
        found = state.classic(module_name, containing_dir)
    else:
        found = state.node(module_name, containing_dir)

    result = ResolvedModuleWithFailedLookupLocations(
        resolved_module=_to_resolved_module(found),
        failed_lookup_locations=state.failed_lookup_locations,
    )
    if cache is not None:
        cache.set(containing_dir, module_name, kind.value, result)
    return result


def resolve_js_module(module_name: str, initial_dir: str, host: CompilerHost) -> Optional[str]:
    """
    Node10 resolution restricted to JavaScript files, starting in *initial_dir*.
    """
    state = _ResolutionState(
        CompilerOptions(),
        host,
        None,
        ModuleResolutionKind.NODE10,
        passes=(Extensions.JAVASCRIPT,),
    )
    found = state.node(module_name, os.path.abspath(initial_dir))
    resolved = _to_resolved_module(found)
    return resolved.resolved_file_name if resolved else None
