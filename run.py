#!/usr/bin/env python3
"""
Simple Bank Entry Point

Starts the FastAPI server with the ledger store.
"""

import sys

from simple_bank.api import run_server
from simple_bank.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Simple Bank...")
    print(f"💾 Ledger data: {config.data_url}")
    print(f"🌐 API available at: http://localhost:{config.api_port}/api/accounts")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\n👋 Shutting down Simple Bank...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
