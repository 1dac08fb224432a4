#!/usr/bin/env python3
"""
Run the API with uvicorn using the configured host/port.

Usage:
  python scripts/serve.py [--host 0.0.0.0] [--port 8080] [--reload]
"""
from __future__ import annotations

import argparse
import sys

import uvicorn

from api.core.config import get_settings


def main() -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Serve the flat-file MVC API")
    ap.add_argument("--host", default=settings.host, help="Bind address (default: HOST env or 127.0.0.1)")
    ap.add_argument("--port", type=int, default=settings.port, help="Listen port (default: PORT env or 8080)")
    ap.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = ap.parse_args()

    print(f"Server running at http://{args.host}:{args.port}/")
    uvicorn.run("api.app:create_app", factory=True, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
