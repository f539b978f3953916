#!/usr/bin/env python3
"""Delete retained MQTT topics of a removed host or hardware component.

See hostagent/decommission.py for options.
"""

import sys

from hostagent.decommission import main

if __name__ == "__main__":
    sys.exit(main())
