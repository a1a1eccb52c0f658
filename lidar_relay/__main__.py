import sys

from lidar_relay.cli import main

sys.exit(main())
