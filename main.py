#!/usr/bin/env python3
"""Host Agent - Windows host telemetry for Home Assistant over MQTT.

Runs one publishing cycle. See hostagent/agent.py for options.
"""

import sys

from hostagent.agent import main

if __name__ == "__main__":
    sys.exit(main())
