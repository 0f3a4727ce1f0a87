import argparse
import asyncio
from typing import List

import uvicorn

from .settings import API_PORT, LOG_LEVEL, SITE_PORT


def build_servers(args: argparse.Namespace) -> List[uvicorn.Server]:
    log_level = args.log_level.lower()
    configs = [uvicorn.Config("jungle404.main:app", host=args.host, port=args.api_port, log_level=log_level)]
    if not args.no_site:
        configs.append(uvicorn.Config("jungle404.site:site_app", host=args.host, port=args.site_port, log_level=log_level))
    return [uvicorn.Server(config) for config in configs]


async def serve_all(servers: List[uvicorn.Server]) -> None:
    await asyncio.gather(*(server.serve() for server in servers))


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Jungle 404 planting API and demo site.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--api-port", type=int, default=API_PORT, help="Planting API port")
    parser.add_argument("--site-port", type=int, default=SITE_PORT, help="Demo website port")
    parser.add_argument("--no-site", action="store_true", help="Only run the planting API")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="uvicorn log level")
    args = parser.parse_args()
    asyncio.run(serve_all(build_servers(args)))


if __name__ == "__main__":
    main()
