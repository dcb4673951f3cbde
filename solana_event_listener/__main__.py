import sys

from solana_event_listener.runner import main

sys.exit(main())
