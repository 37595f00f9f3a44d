"""Locate the credential configuration file once per process.

Resolution order:

1. ``APICLIENT_CONFIG_PATH`` (environment or ``.env``) names the file directly.
2. Otherwise a best-effort directory convention is applied to the directory
   of the running program. When that directory sits below a ``bin`` build
   output folder (``<root>/<project>/bin/<config>``) the file is expected
   three levels up; otherwise (a hosted app running close to its root) one
   level up.

The convention depends on how the program was laid out on disk and is not a
guarantee; deployments should prefer the environment variable.
"""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path, PurePath
from typing import Callable, Optional

from api_client.application.exceptions import ConfigurationNotFound
from api_client.config import get_env, settings
from api_client.infrastructure.log_utils import log_message

CONFIG_PATH_ENV_VAR = "APICLIENT_CONFIG_PATH"
BUILD_OUTPUT_SEGMENT = "bin"
BUILD_OUTPUT_LEVELS_UP = 3
HOSTED_LEVELS_UP = 1


def is_build_output_dir(base_dir: PurePath) -> bool:
    """Return ``True`` when ``base_dir`` lies inside a ``bin`` folder.

    The final component itself does not count: ``/srv/app/bin`` is a hosted
    layout, ``/src/project/bin/debug`` is a build output.
    """

    return BUILD_OUTPUT_SEGMENT in base_dir.parts[:-1]


def find_solution_dir(base_dir: PurePath) -> PurePath:
    """Walk up from ``base_dir`` according to the layout convention.

    Pure path arithmetic, no filesystem access. Raises
    :class:`ConfigurationNotFound` when ``base_dir`` has fewer ancestors than
    the convention needs.
    """

    levels = BUILD_OUTPUT_LEVELS_UP if is_build_output_dir(base_dir) else HOSTED_LEVELS_UP
    ancestors = base_dir.parents
    if len(ancestors) < levels:
        raise ConfigurationNotFound(
            f"Cannot walk {levels} level(s) up from {base_dir}: only {len(ancestors)} ancestor(s) available",
            searched=Path(base_dir),
        )
    return ancestors[levels - 1]


def default_base_dir() -> Path:
    """Directory of the running program, or the working directory when unknown."""

    main_script = sys.argv[0] if sys.argv else ""
    if main_script and main_script not in ("-c", "-m"):
        return Path(main_script).resolve().parent
    return Path.cwd()


class ConfigLocator:
    """Resolve and cache the absolute path of the configuration file.

    ``base_dir``, ``file_name``, ``override`` and ``exists`` are injectable so
    the heuristic can be exercised with synthetic paths.
    """

    def __init__(
        self,
        *,
        base_dir: Optional[PurePath] = None,
        file_name: Optional[str] = None,
        override: Optional[Callable[[], Optional[str]]] = None,
        exists: Callable[[Path], bool] = os.path.isfile,
    ) -> None:
        self._base_dir = base_dir
        self._file_name = file_name
        self._override = override or _override_from_environment
        self._exists = exists
        self._lock = threading.Lock()
        self._resolved: Optional[Path] = None

    @property
    def file_name(self) -> str:
        return self._file_name or settings.APICLIENT_CONFIG_FILE_NAME

    def resolve(self) -> Path:
        """Return the configuration path, computing it on the first call only."""

        if self._resolved is not None:
            return self._resolved
        with self._lock:
            if self._resolved is None:
                self._resolved = self._locate()
        return self._resolved

    def reset(self) -> None:
        """Forget the cached path so the next :meth:`resolve` searches again."""

        with self._lock:
            self._resolved = None

    def _locate(self) -> Path:
        override = self._override()
        if override:
            path = Path(override).expanduser()
            if not path.is_absolute():
                path = Path.cwd() / path
            if not self._exists(path):
                log_message(f"{CONFIG_PATH_ENV_VAR} points to missing file {path}", "ERROR")
                raise ConfigurationNotFound(
                    f"{CONFIG_PATH_ENV_VAR} is set to {path} but no such file exists",
                    searched=path,
                )
            log_message(f"Using configuration file from {CONFIG_PATH_ENV_VAR}: {path}", "DEBUG")
            return path

        base_dir = self._base_dir if self._base_dir is not None else default_base_dir()
        solution_dir = Path(find_solution_dir(PurePath(base_dir)))
        candidate = solution_dir / self.file_name
        if not self._exists(candidate):
            log_message(f"Unable to locate {self.file_name} in {solution_dir}", "ERROR")
            raise ConfigurationNotFound(
                f"Unable to locate {self.file_name} in solution folder {solution_dir}",
                searched=solution_dir,
            )
        log_message(f"Located configuration file {candidate} from base directory {base_dir}", "DEBUG")
        return candidate


def _override_from_environment() -> Optional[str]:
    value = get_env(CONFIG_PATH_ENV_VAR, parser=str)
    if value is None:
        return None
    return str(value).strip() or None


_default_locator = ConfigLocator()


def get_config_locator() -> ConfigLocator:
    """Return the process-wide locator."""

    return _default_locator


def resolve_config_path() -> Path:
    """Resolve the configuration file through the process-wide locator."""

    return _default_locator.resolve()


def reset_config_path_cache() -> None:
    """Clear the process-wide cached path; intended for tests."""

    _default_locator.reset()


__all__ = [
    "CONFIG_PATH_ENV_VAR",
    "ConfigLocator",
    "default_base_dir",
    "find_solution_dir",
    "get_config_locator",
    "is_build_output_dir",
    "reset_config_path_cache",
    "resolve_config_path",
]
