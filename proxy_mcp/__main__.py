import sys

from proxy_mcp.cli import main

sys.exit(main())
