"""Bootstrap helpers for config, backends, and relay wiring."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from touchrelay import __version__
from touchrelay.client.client_logging import logging_setup
from touchrelay.client.runtime import TouchRelay
from touchrelay.client.supervisor import LivenessSupervisor
from touchrelay.client.transport import TransportSession
from touchrelay.common.config import Config, ConfigLoader
from touchrelay.common.settings import settings
from touchrelay.common.types import Screen
from touchrelay.gesture.tracker import GestureTracker
from touchrelay.input.backend import GestureSink, ScreenBackend
from touchrelay.input.factory import screenBackend_create, touchSink_create

logger = logging.getLogger(__name__)


def configWithSettings_load(args: argparse.Namespace) -> Config:
    """
    Load config with CLI overrides and initialize settings.

    Args:
        args: Parsed CLI args.

    Returns:
        Loaded config.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    try:
        config: Config = ConfigLoader.configWithOverrides_load(
            file_path=config_path,
            endpoint=getattr(args, "endpoint", None),
            display=getattr(args, "display", None),
            screen=getattr(args, "screen", None),
            screen_width=getattr(args, "screen_width", None),
            screen_height=getattr(args, "screen_height", None),
            sink=getattr(args, "sink", None),
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Create a config.yml file or omit --config to use defaults", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)
    settings.initialize(config)
    return config


def loggingWithConfig_setup(args: argparse.Namespace, config: Config) -> None:
    """
    Setup logging from config and optional CLI override.

    Args:
        args: Parsed CLI args.
        config: Loaded config.
    """
    logging_setup(config.logging, getattr(args, "log_level", None))


def screenConnection_establish(config: Config) -> tuple[ScreenBackend, Screen]:
    """
    Create and connect the screen backend.

    Args:
        config: Loaded config.

    Returns:
        Connected backend and its current geometry.
    """
    try:
        screen_backend: ScreenBackend = screenBackend_create(
            config.screen.backend,
            config.screen.display,
            config.screen.width,
            config.screen.height,
        )
        screen_backend.connection_establish()
        screen: Screen = screen_backend.screenGeometry_get()
        logger.info("Screen geometry: %sx%s", screen.width, screen.height)
        return screen_backend, screen
    except Exception as e:
        logger.error("Failed to open screen backend '%s': %s", config.screen.backend, e)
        sys.exit(1)


def touchSink_open(config: Config, screen: Screen) -> GestureSink:
    """
    Create the injection sink.

    Args:
        config: Loaded config.
        screen: Screen geometry.

    Returns:
        Gesture sink.
    """
    try:
        return touchSink_create(
            config.sink.backend,
            screen,
            config.sink.device_name,
            config.sink.max_contacts,
        )
    except Exception as e:
        logger.error("Failed to create '%s' touch sink: %s", config.sink.backend, e)
        sys.exit(1)


def relay_create(config: Config, sink: GestureSink, screen_backend: ScreenBackend) -> TouchRelay:
    """
    Build a relay from config and already-open backends.

    Args:
        config: Loaded config.
        sink: Gesture sink.
        screen_backend: Connected screen backend.

    Returns:
        Relay, not yet started.
    """
    session = TransportSession(
        url=config.endpoint.url,
        subprotocol=config.endpoint.subprotocol,
        open_timeout=config.endpoint.open_timeout,
    )
    tracker = GestureTracker(sink=sink, screen_backend=screen_backend)
    supervisor = LivenessSupervisor(
        session=session,
        tracker=tracker,
        interval=config.heartbeat.interval_seconds,
        heartbeat_payload=config.heartbeat.payload,
    )
    return TouchRelay(session=session, tracker=tracker, supervisor=supervisor)


def relay_run(args: argparse.Namespace) -> None:
    """
    Run the relay until SIGINT or SIGTERM.

    Args:
        args: Parsed CLI args.
    """
    config: Config = configWithSettings_load(args)
    loggingWithConfig_setup(args, config)

    logger.info("touchrelay v%s", __version__)
    logger.info("Endpoint: %s", config.endpoint.url)

    screen_backend, screen = screenConnection_establish(config)
    sink: GestureSink = touchSink_open(config, screen)
    relay: TouchRelay = relay_create(config, sink, screen_backend)

    stop_event = threading.Event()

    def _signal_handle(signum: int, _frame) -> None:
        logger.info("Received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handle)
    signal.signal(signal.SIGTERM, _signal_handle)

    try:
        relay.start()
        logger.info("Relay running. Press Ctrl+C to stop.")
        stop_event.wait()
    finally:
        relay.shutdown()
        sink.close()
        screen_backend.connection_close()
