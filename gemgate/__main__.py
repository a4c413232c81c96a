from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from .app import create_app

logging.basicConfig(level=logging.INFO)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat-completion and native gateway for a Gemini-style API")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with auth_key, api_keys, upstream, model_map and preferences; "
        "the 'key' and 'apikey' environment variables override auth_key and api_keys",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    app = create_app(config_path=args.config)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
