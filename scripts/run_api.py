#!/usr/bin/env python3
"""Run the XRP price tracker API server.

This script starts the uvicorn server for the price API.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    PRICE_REFETCH_INTERVAL_S - Optional. Background poll interval (default: 30).
    PRICE_POLL_ENABLED - Optional. Set to "false" to disable background polling.

Examples:
    python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main() -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Run the FastAPI server for the XRP price tracker.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Fail fast on bad configuration before the server starts
    from core.config import TrackerConfig

    try:
        TrackerConfig.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Starting FastAPI server on {args.host}:{args.port}")
    print("Endpoints:")
    print(f"  - GET  http://{args.host}:{args.port}/price")
    print(f"  - POST http://{args.host}:{args.port}/price/refresh")
    print(f"  - GET  http://{args.host}:{args.port}/system/health")
    print()

    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
