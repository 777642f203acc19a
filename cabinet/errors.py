"""
Exceptions raised by cabinet.

Only configuration and administrative faults ever reach the caller of
``Cabinet.resolve``; everything else is absorbed into an empty result.
"""


class CabinetError(Exception):
    """Base exception for cabinet errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'details': self.details
        }


class ConfigurationError(CabinetError):
    """Invalid configuration."""

    def __init__(self, message: str, config_file: str | None = None):
        super().__init__(
            message,
            details={'config_file': config_file}
        )


class ConfigReadError(ConfigurationError):
    """A configuration file could not be read or parsed."""

    def __init__(self, config_file: str, reason: str):
        super().__init__(
            f"Failed to read config {config_file}: {reason}",
            config_file=config_file,
        )
        self.details['reason'] = reason


class ConfigTypeError(ConfigurationError):
    """A configuration value is neither an object nor a file path."""

    def __init__(self, value: object):
        super().__init__(
            f"Unsupported config type: {type(value).__name__}"
        )
        self.details['type'] = type(value).__name__


class ResolverNotFoundError(CabinetError):
    """No registered resolver has the requested name."""

    def __init__(self, name: str):
        super().__init__(
            f"Unknown resolver: {name}",
            details={'name': name}
        )


class ModuleResolutionError(CabinetError):
    """A resolver could not locate the requested module."""

    def __init__(self, request: str, basedir: str | None = None):
        super().__init__(
            f"Cannot find module '{request}'" + (f" from '{basedir}'" if basedir else ""),
            details={
                'request': request,
                'basedir': basedir
            }
        )
