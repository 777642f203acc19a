from .amd import amd_lookup
from .generic import resolve_dependency_path
from .node import NodeResolver, is_core_module
from .stylesheets import sass_lookup, stylus_lookup
from .webpack import WebpackResolver, load_webpack_config
