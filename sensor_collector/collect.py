#!/usr/bin/env python3
"""
Environmental Sensor Collector

Polls the Avtech and Ambient Weather HTTP endpoints, listens for Raspberry Pi
sensor messages over MQTT and writes every reading to InfluxDB.
"""

import argparse
import logging
import os
import signal
import sys

from .collector_system import CollectorSystem
from .config import load_config
from .errors import ConfigError

_LOGGER = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Environmental Sensor Collector",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-e", "--env-file",
        type=str,
        default=None,
        help="Path to a .env file (searched from the working directory if omitted)"
    )
    return parser.parse_args(argv)


def is_journal_enabled() -> bool:
    return "JOURNAL_STREAM" in os.environ


def configure_logging(level: str = "INFO") -> None:
    if is_journal_enabled():
        formatter = "%(name)s %(levelname)s - %(message)s"
    else:
        formatter = "[%(asctime)s] %(name)s %(levelname)s - %(message)s"
    logging.basicConfig(level=level, format=formatter)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.env_file)
    except ConfigError as e:
        configure_logging()
        _LOGGER.critical("Invalid configuration: %s", e)
        return EXIT_CONFIG_ERROR

    configure_logging(config.log_level)

    system = CollectorSystem(config)

    def signal_handler(sig, frame):
        _LOGGER.info("Received signal %s", signal.Signals(sig).name)
        system.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not system.start():
        system.stop()
        return EXIT_FAILURE

    system.wait()
    system.stop()
    return EXIT_FAILURE if system.failed else 0


if __name__ == "__main__":
    sys.exit(main())
