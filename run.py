#!/usr/bin/env python3
"""
MeterHQ - Launcher
Run this script to use the command line tracker, e.g. ``python run.py week``.
"""

import sys
from pathlib import Path


def get_app_dir():
    """Get the application directory."""
    return Path(__file__).parent


def get_data_dir():
    """Get the data directory (in project folder)."""
    return get_app_dir() / "data"


def main():
    # Set up paths
    app_dir = get_app_dir()
    src_dir = app_dir / "src"
    data_dir = get_data_dir()

    # Ensure data directory exists
    data_dir.mkdir(exist_ok=True)

    # Add src to path
    sys.path.insert(0, str(src_dir))

    # Database path
    db_path = data_dir / "meterhq.db"

    # Import and run
    from main import main as run_cli

    sys.exit(run_cli(sys.argv[1:], default_db=str(db_path)))


if __name__ == '__main__':
    main()
