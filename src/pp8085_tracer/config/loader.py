# pp8085_tracer/config/loader.py
"""
YAML形式の構成ファイルを読み込み、EmulatorConfigを生成します。
"""
import logging
import re
from typing import Any, Dict

import yaml

from pp8085_tracer.common.errors import ConfigError
from pp8085_tracer.controller.cadence import CadenceConfig
from .models import EmulatorConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    def load_from_file(self, path: str) -> EmulatorConfig:
        try:
            with open(path, 'r', encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        logger.info("Loaded configuration from %s", path)
        return self.load_from_dict(data or {})

    # @intent:responsibility 辞書から構成を生成します。欠けているキーはデフォルト値で補います。
    def load_from_dict(self, data: Dict[str, Any]) -> EmulatorConfig:
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")
        defaults = EmulatorConfig()

        try:
            memory_size = self._parse_int(data.get("memory_size", defaults.memory_size))

            cadence_data = data.get("cadence") or {}
            if not isinstance(cadence_data, dict):
                raise ConfigError("'cadence' must be a mapping")
            cadence_defaults = CadenceConfig()
            cadence = CadenceConfig(**{
                key: self._parse_int(cadence_data.get(key, getattr(cadence_defaults, key)))
                for key in ("initial_interval_ms", "min_interval_ms", "max_interval_ms", "speed_min", "speed_max")
            })

            io_ports_data = data.get("io_ports") or []
            if not isinstance(io_ports_data, list):
                raise ConfigError("'io_ports' must be a list")
            io_ports = [self._parse_int(p) for p in io_ports_data]
            theme = str(data.get("theme", defaults.theme)).lower()

            config = EmulatorConfig(memory_size=memory_size, cadence=cadence, io_ports=io_ports, theme=theme)
            config.validate()
        except ValueError as e:
            raise ConfigError(str(e)) from e

        return config

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.lower().startswith("0x"):
                return int(text, 16)
            if re.match(r'^[0-9A-Fa-f]+[hH]$', text):
                return int(text[:-1], 16)
            return int(text)
        raise ValueError(f"Invalid integer format: {value}")
