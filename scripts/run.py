#!/usr/bin/env python3
"""Run the scheduling API locally with Uvicorn."""

import os

import uvicorn

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def main():
    host = os.getenv("APP_HOST", "127.0.0.1")
    port = int(os.getenv("APP_PORT", "8000"))
    reload = os.getenv("APP_RELOAD", "True").lower() in ("true", "1", "t")
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    print(f"Starting scheduling API on {host}:{port} (reload={reload}, log level={log_level})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
        app_dir=PROJECT_ROOT,
        reload_dirs=[PROJECT_ROOT],
    )


if __name__ == "__main__":
    main()
