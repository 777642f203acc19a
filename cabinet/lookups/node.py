"""
Node.js style module resolution.

Implements the algorithm of ``require.resolve``:
- relative and absolute paths are loaded as a file, then as a directory
- bare names are searched in module directories (``node_modules``) from the
  base directory up to the filesystem root
- directories are entered through ``package.json`` ``main`` or ``index``
"""

import json
import os
from typing import Callable, Dict, List, Optional, Sequence, Set

from cabinet.errors import ModuleResolutionError
from cabinet.helpers import is_dir, is_file

PackageFilter = Callable[[dict, str], dict]

# Node.js core modules (built-in)
CORE_MODULES: Set[str] = {
    'assert', 'async_hooks', 'buffer', 'child_process', 'cluster', 'console',
    'constants', 'crypto', 'dgram', 'diagnostics_channel', 'dns', 'domain',
    'events', 'fs', 'http', 'http2', 'https', 'inspector', 'module', 'net',
    'os', 'path', 'perf_hooks', 'process', 'punycode', 'querystring',
    'readline', 'repl', 'stream', 'string_decoder', 'sys', 'timers', 'tls',
    'trace_events', 'tty', 'url', 'util', 'v8', 'vm', 'wasi',
    'worker_threads', 'zlib',
}


def is_core_module(name: str) -> bool:
    if name.startswith("node:"):
        return True
    return name.split("/", 1)[0] in CORE_MODULES


class NodeResolver:
    """Resolves module requests the way Node's ``require`` does."""

    def __init__(self):
        self.package_json_cache: Dict[str, Optional[dict]] = {}

    def resolve(
        self,
        request: str,
        basedir: str,
        extensions: Sequence[str] = (".js",),
        package_filter: Optional[PackageFilter] = None,
        module_directory: Sequence[str] = ("node_modules",),
        paths: Sequence[str] = (),
    ) -> Optional[str]:
        """
        Resolve *request* from *basedir*.

        Returns ``None`` for core modules; raises
        :class:`ModuleResolutionError` when nothing is found.
        """
        if not request:
            raise ModuleResolutionError(str(request), basedir)

        basedir = os.path.abspath(basedir or ".")

        if request.startswith(("./", "../", "/")) or request in (".", "..") or os.path.isabs(request):
            target = os.path.normpath(os.path.join(basedir, request))
            if request in (".", "..") or request.endswith("/"):
                target = target + os.sep
            found = (self._load_as_file(target, extensions)
                     or self._load_as_directory(target, extensions, package_filter))
            if found:
                return os.path.abspath(found)
        elif is_core_module(request):
            return None
        else:
            found = self._load_node_modules(
                request, basedir, extensions, package_filter, module_directory, paths
            )
            if found:
                return os.path.abspath(found)

        raise ModuleResolutionError(request, basedir)

    # ------------------------------------------------------------------ #
    def _read_package_json(self, directory: str) -> Optional[dict]:
        path = os.path.join(directory, "package.json")
        if path in self.package_json_cache:
            cached = self.package_json_cache[path]
            return dict(cached) if cached is not None else None

        data: Optional[dict] = None
        if is_file(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                data = loaded if isinstance(loaded, dict) else None
            except (ValueError, OSError):
                data = None
        self.package_json_cache[path] = data
        return dict(data) if data is not None else None

    def _load_as_file(self, target: str, extensions: Sequence[str]) -> Optional[str]:
        if target.endswith(os.sep):
            return None
        if is_file(target):
            return target
        for ext in extensions:
            if is_file(target + ext):
                return target + ext
        return None

    def _load_as_directory(
        self,
        target: str,
        extensions: Sequence[str],
        package_filter: Optional[PackageFilter],
    ) -> Optional[str]:
        target = target.rstrip(os.sep) or os.sep
        pkg = self._read_package_json(target)
        if pkg is not None:
            if package_filter is not None:
                pkg = package_filter(pkg, target) or pkg
            main = pkg.get("main")
            if isinstance(main, str) and main:
                if main in (".", "./"):
                    main = "./index"
                main_path = os.path.normpath(os.path.join(target, main))
                found = self._load_as_file(main_path, extensions)
                if found:
                    return found
                found = self._load_as_directory(main_path, extensions, package_filter) if is_dir(main_path) else None
                if found:
                    return found
        return self._load_as_file(os.path.join(target, "index"), extensions)

    def node_modules_paths(
        self,
        start: str,
        module_directory: Sequence[str] = ("node_modules",),
        paths: Sequence[str] = (),
    ) -> List[str]:
        """Candidate module directories from *start* up to the root."""
        start = os.path.abspath(start)
        ancestors: List[str] = []
        current = start
        while True:
            ancestors.append(current)
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent

        dirs: List[str] = []
        for ancestor in ancestors:
            for module_dir in module_directory:
                # joined under every ancestor, absolute ones included (Node's path.join)
                dirs.append(os.path.normpath(os.path.join(ancestor, module_dir.lstrip("/\\"))))
        dirs.extend(os.path.abspath(p) for p in paths)
        return dirs

    def _load_node_modules(
        self,
        request: str,
        start: str,
        extensions: Sequence[str],
        package_filter: Optional[PackageFilter],
        module_directory: Sequence[str],
        paths: Sequence[str],
    ) -> Optional[str]:
        seen: Set[str] = set()
        for directory in self.node_modules_paths(start, module_directory, paths):
            if directory in seen or not is_dir(directory):
                continue
            seen.add(directory)
            candidate = os.path.join(directory, request)
            found = (self._load_as_file(candidate, extensions)
                     or self._load_as_directory(candidate, extensions, package_filter))
            if found:
                return found
        return None
