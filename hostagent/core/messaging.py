"""MQTT messaging layer for Host Agent.

This module provides the MqttTransport interface used by the executor and
the planner, and ``MessageBroker``, its implementation on top of paho-mqtt.
"""

# Standard library imports
import logging
import os
import threading
from typing import List, Optional, Protocol

# Third-party imports
import paho.mqtt.client as mqtt

# Local imports
from hostagent.core.config import AgentConfig

logger = logging.getLogger(__name__)


class MqttTransport(Protocol):
    """Operations the core needs from a broker connection."""

    def publish(self, topic: str, payload: str, retain: bool = False, qos: int = 1) -> bool: ...

    def delete(self, topic: str, qos: int = 1) -> bool: ...

    def query_topics(
        self, pattern: str, timeout: float = 3.0, max_messages: int = 500
    ) -> List[str]: ...


class MessageBroker:
    """MqttTransport backed by a connected paho-mqtt client.

    Attributes:
        client: The underlying paho-mqtt client instance.
        ack_timeout: Seconds to wait for the broker to acknowledge a QoS 1/2
            publish. Zero disables the wait.

    Example:
        >>> broker = MessageBroker(client)
        >>> broker.publish("windows/my_pc/system/cpu_load", "12.5", qos=1)
        True
    """

    def __init__(self, client: mqtt.Client, ack_timeout: float = 5.0):
        """Initialize the message broker.

        Args:
            client: Connected paho-mqtt client with its network loop running.
            ack_timeout: Seconds to wait for QoS acknowledgements.
        """
        self.client = client
        self.ack_timeout = ack_timeout
        logger.debug(f"MessageBroker initialized (ack_timeout={ack_timeout}s)")

    def publish(self, topic: str, payload: str, retain: bool = False, qos: int = 1) -> bool:
        """Publish a payload and report whether the broker took it.

        Args:
            topic: Full MQTT topic.
            payload: String payload (empty string clears a retained message).
            retain: Whether to retain the message on the broker.
            qos: Quality of Service level (0, 1, or 2).

        Returns:
            True on success, False when the publish was rejected or not
            acknowledged in time.
        """
        try:
            info = self.client.publish(topic, payload=payload, qos=qos, retain=retain)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                logger.warning(f"Publish to {topic} rejected: {mqtt.error_string(info.rc)}")
                return False
            if qos > 0 and self.ack_timeout:
                info.wait_for_publish(timeout=self.ack_timeout)
                if not info.is_published():
                    logger.warning(f"Publish to {topic} not acknowledged in {self.ack_timeout}s")
                    return False
        except (OSError, RuntimeError, ValueError) as e:
            logger.error(f"Error publishing to {topic}: {e}")
            return False

        logger.debug(f"Published to {topic} (retain={retain}, qos={qos})")
        return True

    def delete(self, topic: str, qos: int = 1) -> bool:
        """Clear a retained message by publishing an empty retained payload."""
        return self.publish(topic, "", retain=True, qos=qos)

    def query_topics(
        self, pattern: str, timeout: float = 3.0, max_messages: int = 500
    ) -> List[str]:
        """List topics holding a retained, non-empty message under ``pattern``.

        Subscribes to the wildcard, gathers topics until ``max_messages`` or
        ``timeout`` seconds, then unsubscribes. A timeout is not an error:
        whatever was gathered so far is returned.

        Args:
            pattern: MQTT subscription filter (e.g. "homeassistant/sensor/pc1/#").
            timeout: Maximum seconds to listen.
            max_messages: Stop after this many distinct topics.

        Returns:
            Topics in arrival order, empty on error.
        """
        if max_messages <= 0:
            return []

        found: List[str] = []
        lock = threading.Lock()
        done = threading.Event()

        def on_message(client, userdata, message):
            if not message.retain or not message.payload:
                return
            with lock:
                if len(found) < max_messages and message.topic not in found:
                    found.append(message.topic)
                if len(found) >= max_messages:
                    done.set()

        try:
            self.client.message_callback_add(pattern, on_message)
            result, _ = self.client.subscribe(pattern, qos=0)
            if result != mqtt.MQTT_ERR_SUCCESS:
                logger.warning(f"Subscribe to {pattern} failed: {mqtt.error_string(result)}")
                return []
            if not done.wait(timeout):
                logger.debug(f"Topic query on {pattern} ended after {timeout}s")
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning(f"Topic query on {pattern} failed: {e}")
            return []
        finally:
            try:
                self.client.unsubscribe(pattern)
                self.client.message_callback_remove(pattern)
            except (OSError, RuntimeError, ValueError) as e:
                logger.debug(f"Could not unsubscribe from {pattern}: {e}")

        with lock:
            return list(found)


# ----------------------------
# Connection handling
# ----------------------------


def connect_client(config: AgentConfig, will_topic: Optional[str] = None) -> mqtt.Client:
    """Create a paho client, connect it and start its network loop.

    Args:
        config: Run configuration.
        will_topic: Availability topic that receives a retained "offline"
            if the connection drops.

    Returns:
        Connected client.

    Raises:
        ConnectionError: If the broker refuses or does not answer within
            ``config.connection_timeout`` seconds.
    """
    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id=f"hostagent-{config.host}-{os.getpid()}",
    )
    if config.username:
        client.username_pw_set(config.username, config.password)
    if will_topic:
        client.will_set(will_topic, "offline", qos=1, retain=True)

    connected = threading.Event()
    refused = []

    def on_connect(client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            refused.append(str(reason_code))
            logger.error(f"MQTT connection refused: {reason_code}")
        else:
            logger.info(f"MQTT connected to {config.broker}:{config.port}")
        connected.set()

    client.on_connect = on_connect

    logger.info(f"Attempting to connect to MQTT broker at {config.broker}:{config.port}...")
    try:
        client.connect(config.broker, config.port, keepalive=config.keepalive)
    except OSError as e:
        raise ConnectionError(f"Could not connect to {config.broker}:{config.port}: {e}") from e

    client.loop_start()
    if not connected.wait(config.connection_timeout) or refused:
        client.loop_stop()
        reason = refused[0] if refused else "timed out"
        raise ConnectionError(f"MQTT connection to {config.broker} failed: {reason}")

    return client


def disconnect_client(client: mqtt.Client) -> None:
    """Disconnect cleanly and stop the network loop."""
    try:
        client.disconnect()
    finally:
        client.loop_stop()
    logger.info("MQTT client disconnected cleanly")
