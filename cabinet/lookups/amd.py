"""
RequireJS (AMD) module lookup.

Relative ids are resolved next to the requiring file; everything else goes
through the config's ``paths`` and ``baseUrl``.
"""

import os
from typing import Any, Optional

from cabinet.helpers import is_file, strip_loader
from cabinet.js_config import read_requirejs_config
from cabinet.logger import CabinetLogger as logger
from cabinet.models import ConfigFile, InlineConfig, config_source


def _apply_paths(partial: str, paths: dict) -> str:
    # longest matching id prefix wins, like RequireJS itself
    best: Optional[str] = None
    for key in paths:
        if partial == key or partial.startswith(key + "/"):
            if best is None or len(key) > len(best):
                best = key
    if best is None:
        return partial
    target = paths[best]
    if isinstance(target, list):
        target = next((t for t in target if isinstance(t, str)), None)
    if not isinstance(target, str):
        return partial
    return target + partial[len(best):]


def amd_lookup(
    partial: str,
    filename: str,
    directory: Optional[str] = None,
    config: Any = None,
    config_path: Optional[str] = None,
) -> str:
    """
    Resolve an AMD module id to an absolute path, or ``""``.

    *config* is a dict, a config file path or a tagged config source; any
    other type raises :class:`ConfigTypeError`.
    """
    if not partial:
        return ""

    config = config_source(config)

    loaded: dict[str, Any] = {}
    if isinstance(config, InlineConfig):
        loaded = config.value
    elif isinstance(config, ConfigFile):
        config_path = config_path or config.path
        loaded = read_requirejs_config(config.path)
    elif config_path:
        loaded = read_requirejs_config(config_path)

    if not directory:
        directory = os.path.dirname(config_path) if config_path else os.path.dirname(filename)

    module_id = strip_loader(partial)

    if module_id.startswith(("./", "../")):
        candidate = os.path.join(os.path.dirname(filename), module_id)
    else:
        paths = loaded.get("paths") if isinstance(loaded.get("paths"), dict) else {}
        module_id = _apply_paths(module_id, paths)
        base_url = loaded.get("baseUrl") if isinstance(loaded.get("baseUrl"), str) else "./"
        # path targets resolve against baseUrl
        candidate = os.path.join(directory, base_url, module_id)

    candidate = os.path.normpath(os.path.abspath(candidate))
    for option in (candidate, candidate + ".js"):
        if is_file(option):
            logger.debug("amd module resolved", partial=partial, result=option)
            return option

    logger.debug("amd module not found", partial=partial, candidate=candidate)
    return ""
