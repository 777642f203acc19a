from .cabinet import Cabinet, resolve
from .errors import (
    CabinetError,
    ConfigReadError,
    ConfigTypeError,
    ConfigurationError,
    ModuleResolutionError,
    ResolverNotFoundError,
)
from .models import (
    ConfigFile,
    InlineConfig,
    ModuleType,
    NodeModulesConfig,
    ResolutionRequest,
    ResolverEntry,
    config_source,
)
from .settings import CabinetSettings, load_settings
