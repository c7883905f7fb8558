import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .scanning.models import ScanConfig, ScanModule

ENV_PREFIX = "IOCSWEEP_"

# Env keys under these prefixes go into the nested section, e.g.
# IOCSWEEP_SCAN_MAX_FILE_SIZE -> scan.max_file_size
NESTED_SECTIONS = ("scan",)


class SweepConfig(BaseModel):
    log_level: str = "info"
    log_dir: str = "."
    log_file: bool = True
    signature_dir: str = "./signatures"
    indicator_file: Optional[str] = None
    rules_dir: Optional[str] = None
    target: Optional[str] = None
    modules: List[ScanModule] = Field(
        default_factory=lambda: [ScanModule.PROCESS_CHECK, ScanModule.FILE_SCAN]
    )
    json_output: Optional[str] = None
    scan: ScanConfig = Field(default_factory=ScanConfig)

    def indicator_path(self) -> Path:
        if self.indicator_file:
            return Path(self.indicator_file)
        return Path(self.signature_dir) / "iocs" / "hash-iocs.txt"

    def rules_path(self) -> Path:
        if self.rules_dir:
            return Path(self.rules_dir)
        return Path(self.signature_dir) / "yara"


class ConfigManager:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config: Optional[SweepConfig] = None
        self.load_config()

    def load_config(self) -> SweepConfig:
        """Load configuration from file (if given) and environment"""
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

        config_data = self._merge_env_vars(config_data)
        self.config = SweepConfig(**config_data)
        return self.config

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge environment variables with configuration"""
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            config_key = key[len(ENV_PREFIX):].lower()

            section, _, nested_key = config_key.partition('_')
            if section in NESTED_SECTIONS and nested_key:
                section_data = config_data.get(section) or {}
                section_data[nested_key] = value
                config_data[section] = section_data
            elif config_key == 'modules':
                config_data[config_key] = [m.strip() for m in value.split(',') if m.strip()]
            else:
                config_data[config_key] = value

        return config_data

    def get_config(self) -> SweepConfig:
        """Get current configuration"""
        if self.config is None:
            self.load_config()
        return self.config

    def apply_overrides(
        self,
        updates: Optional[Dict[str, Any]] = None,
        scan_updates: Optional[Dict[str, Any]] = None,
    ) -> SweepConfig:
        """Overlay non-None values (e.g. from the command line) onto the config"""
        config = self.get_config()
        updates = {k: v for k, v in (updates or {}).items() if v is not None}
        scan_updates = {k: v for k, v in (scan_updates or {}).items() if v is not None}

        if scan_updates:
            scan = ScanConfig(**{**config.scan.model_dump(), **scan_updates})
            updates['scan'] = scan
        if updates:
            config = SweepConfig(**{**config.model_dump(exclude={'scan'}), 'scan': config.scan, **updates})
        self.config = config
        return config
