"""Host Agent publish cycle.

Runs a single monitoring pass: collect readings, plan the topic writes and
publish them. The OS task scheduler is expected to call this periodically,
typically a light cycle every minute and a full cycle less often.

MQTT Topics Structure:
    windows/{host}/system/cpu_load                      CPU load (%)
    windows/{host}/temp/cpu                             CPU temperature (°C)
    windows/{host}/disks                                Volume capacity (JSON)
    windows/{host}/health                               Physical disk health (JSON)
    windows/{host}/availability                         online/offline (LWT)
    homeassistant/sensor/{host}/{metric}/config         Host sensor discovery
    homeassistant/sensor/{model}_{serial}_{metric}/config
                                                        Disk sensor discovery

Usage:
    python main.py              # Full cycle
    python main.py --light      # CPU and volumes only
    python main.py --dry-run    # Log the planned writes, publish nothing

Exit Codes:
    0: Every topic was published
    1: Configuration error, connection failure or failed publishes
"""

# Standard library imports
import argparse
import logging
from pathlib import Path
from typing import List, Optional

# Local imports
from hostagent.collectors.system import SystemMetricsProvider
from hostagent.core.config import BASE_DIR, ConfigError, load_config
from hostagent.core.messaging import MessageBroker, connect_client, disconnect_client
from hostagent.core.topics import availability_topic
from hostagent.monitors.system import SystemMonitor
from hostagent.utils.logs import setup_logging

logger = logging.getLogger(__name__)

LOG_PATH = BASE_DIR / "data" / "main.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostagent", description="Publish host metrics to MQTT."
    )
    parser.add_argument(
        "--light", action="store_true", help="skip disk health and discovery"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="log planned writes without publishing"
    )
    parser.add_argument("--config", type=Path, default=None, help="path to config.ini")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LOG_PATH, debug=args.debug)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    provider = SystemMetricsProvider()

    if args.dry_run:
        monitor = SystemMonitor(provider, None, config)
        monitor.run_cycle(full=not args.light, dry_run=True)
        return 0

    try:
        client = connect_client(config, will_topic=availability_topic(config.host))
    except ConnectionError as e:
        logger.error(str(e))
        return 1

    try:
        broker = MessageBroker(client)
        monitor = SystemMonitor(provider, broker, config)
        summary = monitor.run_cycle(full=not args.light)
    finally:
        disconnect_client(client)

    return summary.exit_code
