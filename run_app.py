#!/usr/bin/env python3
"""
Answer Paper Grader Application Runner
Startup script for the Flask API.
"""

import os
import sys

from src.constants import (
    DEFAULT_DEBUG,
    DEFAULT_ENCODING,
    DEFAULT_FLASK_ENV,
    DEFAULT_HOST,
    DEFAULT_PORT,
    ENV_DEBUG,
    ENV_FLASK_ENV,
    ENV_HOST,
    ENV_PORT,
    ENV_PYTHONIOENCODING,
    UI_PRESS_CTRL_C,
    UI_SHUTDOWN_MESSAGE,
    UI_STARTUP_MESSAGE,
)
from utils.env_loader import setup_environment

# Set up UTF-8 encoding for Windows compatibility
os.environ[ENV_PYTHONIOENCODING] = DEFAULT_ENCODING

# Create instance/ and .env, then load environment variables
setup_environment()


def main():
    """Main entry point."""
    print(UI_STARTUP_MESSAGE)

    from waitress import serve

    from webapp.app_factory import create_app

    app = create_app(os.getenv(ENV_FLASK_ENV, DEFAULT_FLASK_ENV))

    host = os.getenv(ENV_HOST, DEFAULT_HOST)
    port = int(os.getenv(ENV_PORT, DEFAULT_PORT))
    debug = os.getenv(ENV_DEBUG, DEFAULT_DEBUG).lower() == "true"

    # For production deployment (Render, Heroku, etc.)
    if os.getenv("RENDER") or os.getenv("DYNO"):
        host = "0.0.0.0"
        debug = False

    print(f"Server: http://{host}:{port}")
    print(f"Debug mode: {'ON' if debug else 'OFF'}")
    print(UI_PRESS_CTRL_C)
    print("=" * 50)

    try:
        if debug:
            app.run(host=host, port=port, debug=True, use_reloader=False, threaded=True)
        else:
            # Long uploads and OCR requests need generous channel timeouts
            serve(app, host=host, port=port, threads=8, channel_timeout=300)
    except KeyboardInterrupt:
        print(f"\n{UI_SHUTDOWN_MESSAGE}")
    except OSError as e:
        if "Address already in use" in str(e):
            print(f"Port {port} is already in use")
            print("Try a different port: PORT=8502 python run_app.py")
        else:
            print(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
