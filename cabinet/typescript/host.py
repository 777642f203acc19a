import json
import os
from typing import Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from cabinet.typescript.resolution import ResolvedModuleWithFailedLookupLocations


class CompilerHost:
    """File-system access used by module-name resolution."""

    def __init__(self, current_directory: Optional[str] = None):
        self.current_directory = os.path.abspath(current_directory or os.getcwd())
        self.use_case_sensitive_file_names = os.path.normcase("A") == "A"

    def get_canonical_file_name(self, file_name: str) -> str:
        if self.use_case_sensitive_file_names:
            return file_name
        return file_name.lower()

    def file_exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def directory_exists(self, path: str) -> bool:
        return os.path.isdir(path)

    def read_file(self, path: str) -> Optional[str]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError):
            return None

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)


class ModuleResolutionCache:
    """Per-directory cache of resolution results and parsed package.json files."""

    def __init__(self, current_directory: str, host: CompilerHost):
        self.current_directory = current_directory
        self.host = host
        self._resolutions: Dict[Tuple[str, str, str], "ResolvedModuleWithFailedLookupLocations"] = {}
        self._package_json: Dict[str, Optional[dict]] = {}

    def _key(self, directory: str, name: str, mode: str) -> Tuple[str, str, str]:
        return self.host.get_canonical_file_name(directory), name, mode

    def get(self, directory: str, name: str, mode: str) -> Optional["ResolvedModuleWithFailedLookupLocations"]:
        return self._resolutions.get(self._key(directory, name, mode))

    def set(self, directory: str, name: str, mode: str,
            result: "ResolvedModuleWithFailedLookupLocations") -> None:
        self._resolutions[self._key(directory, name, mode)] = result

    def __len__(self) -> int:
        return len(self._resolutions)

    def get_package_json(self, directory: str) -> Optional[dict]:
        path = os.path.join(directory, "package.json")
        if path in self._package_json:
            return self._package_json[path]
        data: Optional[dict] = None
        if self.host.file_exists(path):
            text = self.host.read_file(path)
            try:
                loaded = json.loads(text) if text is not None else None
            except ValueError:
                loaded = None
            data = loaded if isinstance(loaded, dict) else None
        self._package_json[path] = data
        return data
