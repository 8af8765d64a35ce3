"""Application settings singleton - single source of truth for configuration

This module provides a singleton Settings class that consolidates:
1. Wire-level constants (must match the remote touch source)
2. Application constants (timing, device limits)
3. Runtime configuration from config.yml

The relay components themselves are never singletons; they are built by
the bootstrap code and receive the values they need as arguments.

Usage:
    from touchrelay.common.settings import settings

    config = ConfigLoader.config_load()
    settings.initialize(config)

    interval = settings.config.heartbeat.interval_seconds
"""

from typing import Optional

from touchrelay.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and wire constants

    This class provides:
    - Wire constants shared with the remote touch source
    - Application tuning constants (timeouts, device limits)
    - Access to runtime configuration loaded from config.yml
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded configuration
        """
        self._config = config

    # =========================================================================
    # Wire Constants
    # =========================================================================

    HEARTBEAT_PAYLOAD: str = "ping"
    """Text frame sent once per supervisor tick while the channel is ready"""

    # =========================================================================
    # Liveness Constants
    # =========================================================================

    DEFAULT_TICK_INTERVAL_SEC: float = 1.0
    """Supervisor tick period; also the reconnect rate limit (seconds)"""

    THREAD_JOIN_TIMEOUT_SEC: float = 2.0
    """Upper bound on waiting for worker threads during shutdown (seconds)"""

    # =========================================================================
    # Touch Device Constants
    # =========================================================================

    TRACKING_ID_MAX: int = 0xFFFF
    """Largest multitouch tracking id before the counter wraps"""

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Raises:
            RuntimeError: If initialize() has not been called
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from touchrelay.common.settings import settings
"""
