from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from miniapp_session.core.config.io import atomic_write_json, quarantine_corrupt, read_json_file
from miniapp_session.core.config.models import SessionConfig
from miniapp_session.core.config.paths import ConfigFsPaths
from miniapp_session.core.errors import ConfigError


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[SessionConfig] = None

    # ---------- public API ----------
    def load(self) -> SessionConfig:
        rr = read_json_file(self.fs.session)
        raw: Dict[str, Any]
        if rr.ok:
            raw = rr.data
        elif rr.error == "missing":
            raw = SessionConfig().model_dump()
            if not self.read_only:
                atomic_write_json(self.fs.session, raw)
                if self.logger:
                    self.logger.info(f"Wrote default config to {self.fs.session}")
        else:
            moved = None if self.read_only else quarantine_corrupt(self.fs.session, self.fs.backups_dir)
            if self.logger:
                self.logger.warning(f"Config {self.fs.session} unreadable ({rr.error}); using defaults. backup={moved}")
            raw = SessionConfig().model_dump()
            if not self.read_only:
                atomic_write_json(self.fs.session, raw)

        self._cfg = self._validate(raw)
        return self._cfg

    def get(self) -> SessionConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, data: Dict[str, Any]) -> SessionConfig:
        """
        Validate first, then atomic write. Invalid data never reaches disk.
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        cfg = self._validate(data)
        atomic_write_json(self.fs.session, cfg.model_dump())
        self._cfg = cfg
        return cfg

    # ---------- internals ----------
    def _validate(self, raw: Dict[str, Any]) -> SessionConfig:
        try:
            return SessionConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError("Invalid session config.", path=os.path.abspath(self.fs.session), errors=e.errors(include_url=False)) from e
