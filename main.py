"""Coffee Quest — dev launcher. Starts the backend API with uvicorn."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "5001")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def main():
    parser = argparse.ArgumentParser(description="Coffee Quest dev launcher")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=int(PORT), help=f"Port (default: {PORT})")
    parser.add_argument("--brand-config", type=Path, default=None,
                        help="Brand config JSON file (default: ./data/brand-config.json)")
    parser.add_argument("--concurrency", type=int, default=None,
                        help="Max provider calls in flight during batch simulation")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # backend.app reads its settings from the environment at import time
    if args.brand_config:
        os.environ["BRAND_CONFIG_PATH"] = str(args.brand_config.resolve())
    if args.concurrency is not None:
        os.environ["BATCH_CONCURRENCY"] = str(args.concurrency)

    print(f"Starting Coffee Quest backend on http://localhost:{args.port} ...")
    uvicorn.run(
        "backend.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
