#!/usr/bin/env python3
"""Trail Directory API server.

Launch: python3 run_server.py
Serves at http://0.0.0.0:3001 (or PORT env var)
"""

import logging
import os

import uvicorn

from trail_directory.config import HOST, LOG_LEVEL, PORT


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("  Trail Directory API")
    print("=" * 60)

    missing = [k for k in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "JWT_SECRET") if not os.environ.get(k)]
    if missing:
        print("\n  WARNING: missing environment variables:")
        print(f"    {', '.join(missing)}")
        print("  Requests touching the database or tokens will fail.\n")

    url = f"http://{HOST}:{PORT}"
    print(f"Starting server on {HOST}:{PORT}")
    print(f"\n  API docs: {url}/api/v2/docs")
    print("  Press Ctrl+C to stop\n")

    from trail_directory.app import create_app
    app = create_app()
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
