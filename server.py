import argparse
import asyncio

from hashring.config import RingConfig, configure_logging
from hashring.http_server import API_PREFIX, RingHTTPServer
from hashring.ring_manager import RingManager


def parse_config(argv=None):
    parser = argparse.ArgumentParser(description="Consistent hash ring HTTP server")
    RingConfig.add_arguments(parser, RingConfig.from_env())
    return RingConfig.from_args(parser.parse_args(argv))


async def serve(config):
    ring = RingManager(config.virtual_nodes)
    ring_server = RingHTTPServer(ring, host=config.host, port=config.port)
    await ring_server.start()

    base = f"http://{config.host}:{config.port}{API_PREFIX}"
    print("\nTry these commands in another terminal:")
    print(f"curl -X POST {base}/nodes -H 'Content-Type: application/json' -d '{{\"id\": \"cache-1\", \"host\": \"10.0.0.1\", \"port\": 11211}}'")
    print(f"curl {base}/nodes/lookup/user:123")
    print(f"curl {base}/ring/info")
    print(f"curl -X DELETE {base}/nodes/cache-1")

    try:
        while True:
            await asyncio.sleep(1)
    finally:
        await ring_server.stop()


def run(argv=None):
    config = parse_config(argv)
    configure_logging(config.log_level)
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    run()
