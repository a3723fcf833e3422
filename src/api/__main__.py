"""
Starts the cockpit API under uvicorn.

Usage:
    pms-cockpit                       # 127.0.0.1:8000
    pms-cockpit --host 0.0.0.0 --port 8080
    python -m src.api --reload
"""

import argparse
import os
from typing import List, Optional

import uvicorn

APP_PATH = "src.api.main:app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the portfolio operations cockpit API")
    parser.add_argument("--host", default=os.getenv("COCKPIT_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("COCKPIT_PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "info").lower(),
        choices=["debug", "info", "warning", "error"],
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    uvicorn.run(
        APP_PATH,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else args.workers,
        log_level=args.log_level,
        # Access lines come from the JSON request middleware.
        access_log=False,
    )


if __name__ == "__main__":
    main()
