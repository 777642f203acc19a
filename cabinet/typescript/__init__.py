from .engine import DEFAULT_MODULE_KIND, TypeScriptEngine
from .host import CompilerHost, ModuleResolutionCache
from .options import (
    CompilerOptions,
    ModuleKind,
    ModuleResolutionKind,
    convert_compiler_options,
    read_config_file,
)
from .resolution import (
    ResolvedModule,
    ResolvedModuleWithFailedLookupLocations,
    resolve_js_module,
    resolve_module_name,
)
