import argparse
import asyncio
import logging

from davinci.models import GameConfig
from .server import HostServer


def main() -> None:
    parser = argparse.ArgumentParser(description="Da Vinci Code host server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None, help="Seed for value sampling and first player")
    parser.add_argument(
        "--strict-placement",
        action="store_true",
        help="Reject placements that break ascending order",
    )
    parser.add_argument(
        "--no-joker-guess",
        action="store_true",
        help="Jokers cannot be guessed and do not count toward a full reveal",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = GameConfig(
        seed=args.seed,
        strict_placement=args.strict_placement,
        allow_joker_guess=not args.no_joker_guess,
    )

    server = HostServer(config)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
