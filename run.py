#!/usr/bin/env python3
"""
Trial Tracker - API Launcher
=============================
Runs the FastAPI backend with uvicorn.

Usage:
    python run.py                    # http://127.0.0.1:8000 with auto-reload
    python run.py --port 9000        # Custom port
    python run.py --no-reload        # Production-style single process
    python run.py --init-db          # Create tables before starting
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# =============================================================================
# CONFIGURATION
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.resolve()
BACKEND_DIR = PROJECT_ROOT / "backend"

BACKEND_HOST = "127.0.0.1"
BACKEND_PORT = 8000


def print_header(text):
    print(f"\n{'=' * 60}")
    print(f"  {text}")
    print('=' * 60)


def init_db():
    """Create tables ahead of the first request."""
    from trialtracker.database import get_db_manager

    db_manager = get_db_manager()
    db_manager.create_tables()
    print(f"✓  Tables ready on {db_manager.config.display_name}")


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    parser = argparse.ArgumentParser(description="Trial Tracker - API Launcher")
    parser.add_argument("--host", default=BACKEND_HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=BACKEND_PORT, help="Bind port")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    parser.add_argument("--init-db", action="store_true", help="Create database tables first")

    args = parser.parse_args()

    for path in (PROJECT_ROOT, BACKEND_DIR):
        if str(path) not in sys.path:
            sys.path.insert(0, str(path))

    print_header("Trial Tracker API")

    if args.init_db:
        init_db()

    print(f"🚀  Starting backend on http://{args.host}:{args.port}")
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        app_dir=str(BACKEND_DIR),
    )


if __name__ == "__main__":
    main()
