#!/usr/bin/env python3
"""
Simple runner script for the membership gate.
This script ensures the correct Python path is set and runs the app.
"""

import sys
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from config_manager import get_app_config
from membership_gate.logging_config import stop_logging
from membership_gate.main import create_app

if __name__ == "__main__":
    app = create_app()
    app_config = get_app_config()

    print("🚀 Starting membership gate...")
    print(f"📁 Working directory: {current_dir}")
    print(f"🌐 Environment: {app_config.environment}")

    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()
