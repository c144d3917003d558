"""
Main entry point untuk menjalankan lock gateway atau acquire lock dari CLI.
"""

import asyncio
import argparse
import json
import logging
import sys

from quorumlock.lock.coordinator import LockCoordinator
from quorumlock.lock.errors import LockError
from quorumlock.nodes.lock_gateway import LockGateway, serve_forever
from quorumlock.utils.config import Config


def setup_logging():
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(Config.LOG_FILE) if Config.LOG_FILE else logging.NullHandler()
        ]
    )


async def run_gateway():
    """Connect ke Redis nodes dan jalankan HTTP gateway"""
    coordinator = await LockCoordinator.from_config(Config)
    gateway = LockGateway(coordinator, Config.GATEWAY_HOST, Config.GATEWAY_PORT)

    print(f"\n{'='*60}")
    print(f"  LOCK GATEWAY STARTED")
    print(f"  Address: http://{Config.GATEWAY_HOST}:{Config.GATEWAY_PORT}")
    print(f"  Nodes: {len(coordinator.nodes)}, quorum: {coordinator.quorum}")
    print(f"{'='*60}\n")

    try:
        await serve_forever(gateway)
    finally:
        await coordinator.aclose(clear=Config.LOCK_CLEAR_ON_SHUTDOWN)


async def run_acquire(key: str, ttl, hold: float):
    """Acquire satu lock, print hasilnya, optionally hold lalu release"""
    coordinator = await LockCoordinator.from_config(Config)
    try:
        options = {} if ttl is None else {'ttl': ttl}
        locked = await coordinator.lock(key, **options)
        print(json.dumps(locked.to_dict(), indent=2))

        if hold > 0:
            await asyncio.sleep(hold)
            await coordinator.unlock(locked)
            print(f"Released {locked.resource}")
    finally:
        await coordinator.aclose()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Quorum-based distributed lock (Redlock)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('serve', help='Run the HTTP lock gateway')

    acquire = subparsers.add_parser('acquire', help='Acquire a lock and print it')
    acquire.add_argument('key', help='Lock key (without prefix)')
    acquire.add_argument('--ttl', type=int, default=None, help='TTL in milliseconds')
    acquire.add_argument('--hold', type=float, default=0,
                         help='Seconds to hold the lock before releasing it')

    args = parser.parse_args()

    # Setup logging
    setup_logging()

    # Display configuration
    Config.display()

    try:
        if args.command == 'serve':
            asyncio.run(run_gateway())
        else:
            asyncio.run(run_acquire(args.key, args.ttl, args.hold))
    except KeyboardInterrupt:
        print("\nExiting...")
    except LockError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
