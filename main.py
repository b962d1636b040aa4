#!/usr/bin/env python3

import asyncio
import signal
import sys

from hashring.config import RingConfig, configure_logging
from hashring.demo import Walkthrough
from hashring.http_server import RingHTTPServer
from hashring.ring_manager import RingManager


class RingService:
    def __init__(self, config):
        self.config = config
        self.ring = RingManager(config.virtual_nodes)
        self.server = RingHTTPServer(self.ring, host=config.host, port=config.port)
        self.running = False

    async def start(self):
        print("Starting Hash Ring Service...")
        print(f"   Virtual nodes per node: {self.config.virtual_nodes}")
        print(f"   Address: http://{self.config.host}:{self.config.port}")
        print("=" * 50)

        await self.server.start()
        self.running = True

    async def stop(self):
        print("\nStopping service...")
        await self.server.stop()
        self.running = False
        print("Service stopped")

    async def keep_running(self):
        while self.running:
            await asyncio.sleep(1)


async def run_server_only(config):
    service = RingService(config)

    try:
        await service.start()

        print("\n" + "=" * 60)
        print("SERVICE READY FOR CONNECTIONS!")
        print("=" * 60)
        print("You can now:")
        print("- Run the shell: python shell.py")
        print("- Use curl commands")
        print("- Connect other applications")
        print("\nPress Ctrl+C to stop the service")
        print("=" * 60)

        await service.keep_running()
    finally:
        await service.stop()


async def run_server_and_shell(config):
    from shell import RingShell

    service = RingService(config)

    try:
        await service.start()

        print("\n" + "=" * 60)
        print("SERVICE READY! Starting interactive shell...")
        print("=" * 60)

        shell = RingShell(f"http://{config.host}:{config.port}")
        await shell.start()
    finally:
        await service.stop()


def run_walkthrough(config):
    Walkthrough(RingManager(config.virtual_nodes)).run()


def show_menu():
    print("Consistent Hash Ring")
    print("=" * 40)
    print("Choose an option:")
    print("1. Console walkthrough")
    print("2. Start HTTP server only")
    print("3. Start HTTP server + interactive shell")
    print("4. Help")
    print("5. Exit")
    print("=" * 40)


def show_help(config):
    print("\nHelp - Consistent Hash Ring")
    print("=" * 50)
    print("OPTION 1: Console walkthrough")
    print("  - Registers three nodes and shows where keys land")
    print("  - Adds and removes a node and reports how many keys moved")
    print("  - Then lets you add/remove/lookup interactively")
    print()
    print("OPTION 2: Server only")
    print(f"  - Serves the API on http://{config.host}:{config.port}/api/ring")
    print("  - Use with python shell.py, curl, or your own applications")
    print()
    print("OPTION 3: Server + shell")
    print("  - Starts the server and opens the shell against it")
    print("  - Try: add cache-1 10.0.0.1 11211, lookup user:123, info")
    print()
    print("CONFIGURATION (environment):")
    print(f"  HASHRING_VIRTUAL_NODES  virtual positions per node (now {config.virtual_nodes})")
    print(f"  HASHRING_HOST           bind address (now {config.host})")
    print(f"  HASHRING_PORT           bind port (now {config.port})")
    print(f"  HASHRING_LOG_LEVEL      logging level (now {config.log_level})")
    print()
    print("OTHER TOOLS:")
    print("  python -m hashring.benchmark   - lookup/build benchmarks")
    print("  python -m hashring.demo        - walkthrough only")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    config = RingConfig.from_env()
    configure_logging(config.log_level)

    if argv:
        if argv[0] == "--demo":
            run_walkthrough(config)
            return
        elif argv[0] == "--server":
            asyncio.run(run_server_only(config))
            return
        elif argv[0] == "--shell":
            asyncio.run(run_server_and_shell(config))
            return
        elif argv[0] == "--help-info":
            show_help(config)
            return

    while True:
        try:
            show_menu()
            choice = input("Enter choice (1-5): ").strip()

            if choice == "1":
                run_walkthrough(config)
                break
            elif choice == "2":
                asyncio.run(run_server_only(config))
                break
            elif choice == "3":
                asyncio.run(run_server_and_shell(config))
                break
            elif choice == "4":
                show_help(config)
                input("\nPress Enter to continue...")
                print("\n" + "=" * 50 + "\n")
            elif choice == "5":
                print("Goodbye!")
                break
            else:
                print("Invalid choice. Please try again.\n")

        except KeyboardInterrupt:
            print("\nGoodbye!")
            break
        except EOFError:
            break


if __name__ == "__main__":
    if sys.platform != "win32":
        def signal_handler(sig, frame):
            print("\nReceived interrupt signal, shutting down...")
            sys.exit(0)

        signal.signal(signal.SIGTERM, signal_handler)

    try:
        main()
    except KeyboardInterrupt:
        print("\nGoodbye!")
