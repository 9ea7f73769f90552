"""
Escalation Config File
======================

Loads ``escalation_config.yaml`` and keeps it current while the service runs.

The YAML is watched with watchdog. Editors usually save by writing a new file
and renaming it over the old one, so created and moved events count as a
change too, not only in-place modifications. The escalation runner asks for
the config on every check, which means a reload takes effect on the next
check with no restart.
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from warning_tracker.core import ConfigurationException
from warning_tracker.escalation.application import IEscalationConfigProvider
from warning_tracker.escalation.domain import EscalationConfig
from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_CHANGE_EVENTS = frozenset({"modified", "created", "moved"})


def read_escalation_config(path: Path) -> EscalationConfig:
    """
    Parse an escalation config file.

    A missing file yields the built-in thresholds.

    Raises:
        ConfigurationException: unreadable YAML or values that fail validation
    """
    if not path.exists():
        logger.warning(f"Escalation config file not found: {path}, using defaults")
        return EscalationConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if data is None:
            return EscalationConfig()
        if not isinstance(data, dict):
            raise TypeError(f"expected a mapping, got {type(data).__name__}")
        return EscalationConfig.model_validate(data)
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        raise ConfigurationException(path, e) from e


class _ConfigFileEvents(FileSystemEventHandler):
    """Forwards changes to one file in the watched directory."""

    def __init__(self, manager: "EscalationConfigManager", path: Path):
        super().__init__()
        self._manager = manager
        self._target = path.resolve()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return

        touched = getattr(event, "dest_path", None) or event.src_path
        if Path(touched).resolve() == self._target:
            logger.info(f"Escalation config changed on disk: {touched}")
            self._manager.reload()


class EscalationConfigManager(IEscalationConfigProvider):
    """
    Current escalation config, reloadable from another thread.

    load() must succeed once at startup. After that a bad edit to the file is
    logged and ignored, and the last good config stays in force.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._config: Optional[EscalationConfig] = None
        self._path: Optional[Path] = None
        self._observer: Optional[Observer] = None

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def config(self) -> EscalationConfig:
        with self._lock:
            if self._config is None:
                raise RuntimeError("Escalation configuration not loaded")
            return self._config

    def get_config(self) -> EscalationConfig:
        return self.config

    def load(self, path: Path) -> EscalationConfig:
        self._path = Path(path)
        config = read_escalation_config(self._path)
        with self._lock:
            self._config = config
        logger.info(
            "Escalation configuration loaded",
            extra={"path": str(self._path), "thresholds": config.thresholds.model_dump()}
        )
        return config

    def reload(self) -> bool:
        """Re-read the file. Returns False, keeping the current config, on failure."""
        if self._path is None:
            return False

        try:
            config = read_escalation_config(self._path)
        except ConfigurationException as e:
            logger.error(
                "Escalation config reload rejected, keeping previous values",
                extra=e.details
            )
            return False

        with self._lock:
            changed = config != self._config
            self._config = config

        if changed:
            logger.info(
                "Escalation configuration reloaded",
                extra={
                    "thresholds": config.thresholds.model_dump(),
                    "default_restore_status": config.default_restore_status.value,
                }
            )
        return True

    def start_watching(self) -> None:
        """Watch the config file's directory; a no-op when the file is absent."""
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        if self._observer is not None:
            return
        if not self._path.exists():
            logger.info(f"No escalation config file at {self._path}, not watching")
            return

        observer = Observer()
        observer.schedule(
            _ConfigFileEvents(self, self._path),
            str(self._path.resolve().parent),
            recursive=False
        )
        try:
            observer.start()
        except OSError as e:
            logger.warning(f"File watching unavailable, escalation config is static: {e}")
            return

        self._observer = observer
        logger.info(f"Watching escalation config: {self._path}")

    def stop_watching(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
