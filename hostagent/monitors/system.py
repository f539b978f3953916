"""System monitoring implementation.

This module provides the SystemMonitor class which runs one publishing
cycle: take a snapshot, plan the writes and apply them through the broker.
Scheduling is left to the OS task scheduler; every invocation is a single
pass.
"""

# Standard library imports
import logging

# Local imports
from hostagent.core.config import AgentConfig
from hostagent.core.executor import RunSummary, execute
from hostagent.core.messaging import MqttTransport
from hostagent.core.planner import plan_publish
from hostagent.core.snapshot import MetricsProvider, take_snapshot

logger = logging.getLogger(__name__)


class SystemMonitor:
    """Publishes host metrics and their discovery documents.

    The full cycle publishes everything, including physical disk health and
    discovery documents. The light cycle only refreshes CPU and volume
    readings so it can run often.

    Attributes:
        provider: Source of host readings.
        transport: MqttTransport used for publishing.
        config: Run configuration.

    Example:
        >>> monitor = SystemMonitor(SystemMetricsProvider(), broker, config)
        >>> summary = monitor.run_cycle(full=True)
        >>> summary.failed
        0
    """

    def __init__(self, provider: MetricsProvider, transport: MqttTransport, config: AgentConfig):
        self.provider = provider
        self.transport = transport
        self.config = config

    def run_cycle(self, full: bool = True, dry_run: bool = False) -> RunSummary:
        """Collect, plan and publish one cycle.

        Args:
            full: Run the full cycle (health and discovery) instead of the light one.
            dry_run: Log the planned writes without publishing.

        Returns:
            RunSummary of the publish run.
        """
        logger.info(f"Starting {'full' if full else 'light'} cycle for {self.config.host}")
        snapshot = take_snapshot(self.provider, full=full)

        for drive in snapshot.removable:
            logger.debug(
                f"Removable drive: {drive.get('model')} "
                f"serial={drive.get('serial')} letters={drive.get('drive_letters')}"
            )

        plan = plan_publish(self.config, snapshot, full=full)
        return execute(
            plan,
            self.transport,
            qos=self.config.qos,
            progress_every=self.config.progress_every,
            dry_run=dry_run,
        )
