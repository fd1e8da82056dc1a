import argparse

from dotenv import load_dotenv
from loguru import logger

from medibook.api.server import run_server

load_dotenv()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the MediBook booking API")
    parser.add_argument("--host", default=None, help="Interface to bind (default: API_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (default: API_PORT)")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    logger.info("Starting booking API")
    run_server(host=args.host, port=args.port)
