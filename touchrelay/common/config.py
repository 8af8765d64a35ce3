"""Configuration file loading and management"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_ENDPOINT_URL = "ws://127.0.0.1:8088"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class EndpointConfig:
    """WebSocket endpoint settings"""
    url: str
    subprotocol: Optional[str]
    open_timeout: float


@dataclass
class HeartbeatConfig:
    """Liveness timer settings"""
    interval_seconds: float
    payload: str


@dataclass
class ScreenConfig:
    """Screen geometry source settings"""
    backend: str  # "x11" or "static"
    display: Optional[str]
    width: Optional[int]
    height: Optional[int]


@dataclass
class SinkConfig:
    """Touch injection sink settings"""
    backend: str  # "uinput" or "log"
    device_name: str
    max_contacts: int


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str
    file: Optional[str]
    format: str
    websockets_level: str


@dataclass
class Config:
    """Complete application configuration"""
    endpoint: EndpointConfig
    heartbeat: HeartbeatConfig
    screen: ScreenConfig
    sink: SinkConfig
    logging: LoggingConfig


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/touchrelay/config.yml",
        "/etc/touchrelay/config.yml",
    ]

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
            ValueError: If the document is not a mapping
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def section_get(data: Dict[str, Any], name: str) -> Dict[str, Any]:
        """
        Fetch an optional config section

        Args:
            data: Raw configuration dictionary
            name: Section key

        Returns:
            Section dictionary, empty when absent

        Raises:
            ValueError: If the section is present but not a mapping
        """
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Config section '{name}' must be a mapping")
        return section

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every key is optional; missing values take the built-in defaults.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object
        """
        endpoint_data = ConfigLoader.section_get(data, "endpoint")
        endpoint = EndpointConfig(
            url=endpoint_data.get("url", DEFAULT_ENDPOINT_URL),
            subprotocol=endpoint_data.get("subprotocol"),
            open_timeout=float(endpoint_data.get("open_timeout", 5.0)),
        )

        heartbeat_data = ConfigLoader.section_get(data, "heartbeat")
        heartbeat = HeartbeatConfig(
            interval_seconds=float(heartbeat_data.get("interval_seconds", 1.0)),
            payload=heartbeat_data.get("payload", "ping"),
        )
        if heartbeat.interval_seconds <= 0:
            raise ValueError("heartbeat.interval_seconds must be positive")

        screen_data = ConfigLoader.section_get(data, "screen")
        screen = ScreenConfig(
            backend=screen_data.get("backend", "x11"),
            display=screen_data.get("display"),
            width=screen_data.get("width"),
            height=screen_data.get("height"),
        )

        sink_data = ConfigLoader.section_get(data, "sink")
        sink = SinkConfig(
            backend=sink_data.get("backend", "uinput"),
            device_name=sink_data.get("device_name", "touchrelay-virtual-touchscreen"),
            max_contacts=int(sink_data.get("max_contacts", 10)),
        )
        if sink.max_contacts < 1:
            raise ValueError("sink.max_contacts must be at least 1")

        logging_data = ConfigLoader.section_get(data, "logging")
        logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
            websockets_level=logging_data.get("websockets_level", "WARNING"),
        )

        return Config(
            endpoint=endpoint,
            heartbeat=heartbeat,
            screen=screen,
            sink=sink,
            logging=logging,
        )

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard
                locations and falls back to defaults when none is found.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If an explicit config file does not exist
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                return ConfigLoader.config_parse({})

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply command-line overrides

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(
                endpoint="ws://127.0.0.1:9000",
                sink="log"
            )
        """
        config = ConfigLoader.config_load(file_path)

        if overrides.get("endpoint") is not None:
            config.endpoint.url = overrides["endpoint"]
        if overrides.get("display") is not None:
            config.screen.display = overrides["display"]
        if overrides.get("screen") is not None:
            config.screen.backend = overrides["screen"]
        if overrides.get("screen_width") is not None:
            config.screen.width = overrides["screen_width"]
        if overrides.get("screen_height") is not None:
            config.screen.height = overrides["screen_height"]
        if overrides.get("sink") is not None:
            config.sink.backend = overrides["sink"]

        return config
