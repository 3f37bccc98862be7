#!/usr/bin/env python3
"""
CallRail Conversion Sync - Main Entry Point

This is a convenience wrapper that imports and runs the sync.
For more control, use scripts/run_sync.py directly.

Usage:
    python main.py --hours 24 --format csv

Environment Variables:
    CALLRAIL_API_KEY: Required. Your CallRail API key.
    CALLRAIL_ACCOUNT_ID: Required. Your CallRail account ID.
"""

import sys

from scripts.run_sync import main

if __name__ == "__main__":
    sys.exit(main())
