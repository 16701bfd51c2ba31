"""Public package surface for ``lib_config_source``.

Environment-scoped configuration: resolve an environment to a backend
location, discover and parse the configuration files stored there, merge them
with "later file wins" precedence, and hand out immutable snapshots.
"""

from __future__ import annotations

from .adapters.backends.directory import DirectoryBackend
from .adapters.backends.git import GitBackend
from .adapters.files_providers.default import (
    DEFAULT_CONFIG_FILE,
    DefaultConfigFilesProvider,
    DirectoryScanConfigFilesProvider,
    StaticConfigFilesProvider,
)
from .adapters.properties_providers.properties import PropertiesFileProvider
from .adapters.properties_providers.selector import PropertiesProviderSelector, default_selector
from .adapters.properties_providers.structured import JSONPropertiesProvider, YAMLPropertiesProvider
from .adapters.resolvers.default import (
    AllButFirstTokenPathResolver,
    EnvironmentResolver,
    FirstTokenLocationResolver,
    FixedLocationResolver,
    FullNamePathResolver,
)
from .application.merge import merge_files, merge_layers
from .application.source import EmptyConfigurationSource, EnvironmentConfigurationSource
from .core import (
    SourceSettings,
    build_source,
    directory_source,
    git_source,
    read_configuration,
    read_configuration_raw,
    source_settings,
)
from .domain.config import EMPTY_SNAPSHOT, ConfigSnapshot, SourceInfo
from .domain.environment import DEFAULT_ENVIRONMENT, Environment, ResolvedLocation
from .domain.errors import (
    BackendError,
    ConfigError,
    DiscoveryError,
    LifecycleError,
    ParseError,
    PropertyLookupError,
    ResolutionError,
)
from .observability import bind_trace_id, get_logger, new_trace_id, trace_scope

__all__ = [
    "AllButFirstTokenPathResolver",
    "BackendError",
    "ConfigError",
    "ConfigSnapshot",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_ENVIRONMENT",
    "DefaultConfigFilesProvider",
    "DirectoryBackend",
    "DirectoryScanConfigFilesProvider",
    "DiscoveryError",
    "EMPTY_SNAPSHOT",
    "EmptyConfigurationSource",
    "Environment",
    "EnvironmentConfigurationSource",
    "EnvironmentResolver",
    "FirstTokenLocationResolver",
    "FixedLocationResolver",
    "FullNamePathResolver",
    "GitBackend",
    "JSONPropertiesProvider",
    "LifecycleError",
    "ParseError",
    "PropertiesFileProvider",
    "PropertiesProviderSelector",
    "PropertyLookupError",
    "ResolutionError",
    "ResolvedLocation",
    "SourceInfo",
    "SourceSettings",
    "StaticConfigFilesProvider",
    "YAMLPropertiesProvider",
    "bind_trace_id",
    "build_source",
    "default_selector",
    "directory_source",
    "get_logger",
    "git_source",
    "merge_files",
    "merge_layers",
    "new_trace_id",
    "read_configuration",
    "read_configuration_raw",
    "source_settings",
    "trace_scope",
]
