#!/usr/bin/env python3
"""CLI entry point for Proxy Manager.

Starts the management API and the reconciliation loop. For deployment
under an ASGI server use ``proxy_manager.main:create_asgi_app`` as a
factory instead.
"""

from proxy_manager.main import main

if __name__ == "__main__":
    main()
