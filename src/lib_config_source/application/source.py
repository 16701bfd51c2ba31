"""Configuration source facade and lifecycle.

Purpose
-------
Offer the public query operation: given an environment, resolve it, locate
its directory in the backend, discover files, merge them, and return an
immutable snapshot. Lifecycle (init, refresh, teardown) is explicit and
separate from queries.

Contents
--------
* :class:`EnvironmentConfigurationSource` – the query pipeline bound to one
  backend and one set of strategies.
* :class:`EmptyConfigurationSource` – a source without files that always
  returns :data:`EMPTY_SNAPSHOT`.
* :class:`_State` – lifecycle states.

System Role
-----------
Built by :mod:`lib_config_source.core` from a
:class:`lib_config_source.core.SourceSettings`. The source keeps no per-query
state, so concurrent :meth:`EnvironmentConfigurationSource.get_configuration`
calls do not interfere; tree updates are serialised by the backend's
:meth:`hold` context.
"""

from __future__ import annotations

import enum
import threading
from pathlib import Path
from types import TracebackType
from typing import Any

from ..domain.config import EMPTY_SNAPSHOT, ConfigSnapshot
from ..domain.environment import Environment, as_environment
from ..domain.errors import LifecycleError
from ..observability import log_debug, log_info, make_event
from .merge import merge_files
from .ports import Backend, ConfigFilesProvider, EnvironmentResolverPort, ProviderSelector


class _State(enum.Enum):
    NEW = "new"
    ACTIVE = "active"
    CLOSED = "closed"


class EnvironmentConfigurationSource:
    """Resolve, discover, merge, and snapshot configuration per environment.

    Why
    ----
    Callers want "the configuration of environment E" without knowing where
    it is stored, how files are named, or which formats they use.

    What
    ----
    Each :meth:`get_configuration` call re-resolves and re-merges; nothing is
    cached. The backend is initialised once by :meth:`init` and released once
    by :meth:`teardown`; queries outside that window raise
    :class:`LifecycleError`.

    Parameters
    ----------
    backend:
        Resource provider implementing
        :class:`lib_config_source.application.ports.Backend`.
    resolver:
        Environment decomposition policy.
    files_provider:
        File discovery policy; its output order is the merge precedence.
    selector:
        Suffix to provider table.
    """

    def __init__(
        self,
        *,
        backend: Backend,
        resolver: EnvironmentResolverPort,
        files_provider: ConfigFilesProvider,
        selector: ProviderSelector,
    ) -> None:
        self.backend = backend
        self.resolver = resolver
        self.files_provider = files_provider
        self.selector = selector
        self._state = _State.NEW
        self._state_lock = threading.Lock()

    @property
    def state(self) -> str:
        """Return ``"new"``, ``"active"`` or ``"closed"``."""

        return self._state.value

    def init(self) -> None:
        """Prepare the backend; allowed exactly once.

        Raises
        ------
        LifecycleError
            When called on an active or closed source.
        """

        with self._state_lock:
            if self._state is not _State.NEW:
                raise LifecycleError(f"Cannot init a source that is {self._state.value}")
            self.backend.init()
            self._state = _State.ACTIVE
        log_info("source_initialised", **make_event(None, None, {"backend": repr(self.backend)}))

    def teardown(self) -> None:
        """Release the backend; allowed once, after :meth:`init`."""

        with self._state_lock:
            if self._state is not _State.ACTIVE:
                raise LifecycleError(f"Cannot tear down a source that is {self._state.value}")
            self._state = _State.CLOSED
            self.backend.teardown()
        log_info("source_closed", **make_event(None, None, {"backend": repr(self.backend)}))

    def refresh(self) -> None:
        """Ask the backend to bring its tree up to date.

        Runs independently of queries; the backend serialises it against
        readers.
        """

        self._ensure_active("refresh")
        self.backend.refresh()

    def get_configuration(self, environment: Environment | str | None = None) -> ConfigSnapshot:
        """Return the merged snapshot for *environment*.

        Parameters
        ----------
        environment:
            :class:`Environment`, environment name, or ``None`` for the
            default environment.

        Raises
        ------
        LifecycleError
            Outside the init/teardown window.
        ResolutionError / DiscoveryError / ParseError / BackendError
            Propagated from the pipeline stages.
        """

        self._ensure_active("query")
        env = as_environment(environment)
        resolved = self.resolver.resolve(env)
        with self.backend.hold():
            self._ensure_active("query")
            root = _join(self.backend.root_directory_for(resolved.location), resolved.path)
            files = self.files_provider.get_config_files(root)
            log_debug("files_discovered", **make_event(env.name, str(root), {"files": list(files)}))
            data, meta = merge_files(root, files, self.selector)
        if not data:
            log_info("configuration_empty", **make_event(env.name, str(root)))
            return EMPTY_SNAPSHOT
        log_info("configuration_merged", **make_event(env.name, str(root), {"files": len(files), "keys": len(data)}))
        return ConfigSnapshot(data, meta)

    def _ensure_active(self, action: str) -> None:
        state = self._state
        if state is not _State.ACTIVE:
            raise LifecycleError(f"Cannot {action} a source that is {state.value}; call init() first")

    def __enter__(self) -> EnvironmentConfigurationSource:
        self.init()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.teardown()

    def __repr__(self) -> str:
        return (
            f"EnvironmentConfigurationSource(backend={self.backend!r}, resolver={self.resolver!r}, "
            f"files_provider={self.files_provider!r}, selector={self.selector!r})"
        )


class EmptyConfigurationSource:
    """Source without any files.

    Holds no resources, so every method is callable at any time and
    :meth:`get_configuration` returns :data:`EMPTY_SNAPSHOT` for whatever
    environment value it is given.

    Examples
    --------
    >>> EmptyConfigurationSource().get_configuration("anything").is_empty()
    True
    """

    def init(self) -> None:
        return None

    def refresh(self) -> None:
        return None

    def teardown(self) -> None:
        return None

    def get_configuration(self, environment: Any = None) -> ConfigSnapshot:
        return EMPTY_SNAPSHOT


def _join(root: Path, relative: str) -> Path:
    return root / relative if relative else root
