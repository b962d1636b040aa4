#!/usr/bin/env python3

import asyncio
import sys
from typing import Optional
from urllib.parse import quote

import aiohttp
from yarl import URL

from hashring.http_server import API_PREFIX


class RingShell:
    def __init__(self, base_url: str = None, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = (base_url or "http://localhost:8080").rstrip("/")
        self.session = session

    @property
    def api(self):
        return f"{self.base_url}{API_PREFIX}"

    async def start(self):
        """Start the shell session"""
        if self.session is None:
            self.session = aiohttp.ClientSession()

        print("Welcome to the Hash Ring Shell!")
        print(f"Connected to: {self.base_url}")
        self.print_commands()
        print("=" * 60)

        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    command = (await loop.run_in_executor(None, input, "ring> ")).strip()
                except (KeyboardInterrupt, EOFError):
                    print("\nGoodbye!")
                    break

                if not command:
                    continue
                if command.lower() in ["quit", "exit", "q"]:
                    break

                await self.execute_command(command)
        finally:
            await self.session.close()

    def print_commands(self):
        print("\nCommands:")
        print("  add <id> [host] [port]     - Register a node")
        print("  remove <id>                - Deregister a node")
        print("  lookup <key>               - Find the node that owns a key")
        print("  info                       - Show ring statistics")
        print("  test [count] [prefix]      - Run a distribution test")
        print("  reset                      - Remove every node")
        print("  help                       - Show this help")
        print("  quit                       - Exit the shell")

    async def execute_command(self, command: str):
        """Execute a shell command"""
        parts = command.split()
        if not parts:
            return

        cmd = parts[0].lower()

        try:
            if cmd == "add" and len(parts) >= 2:
                host = parts[2] if len(parts) > 2 else "localhost"
                port = int(parts[3]) if len(parts) > 3 else 8080
                await self.add(parts[1], host, port)

            elif cmd == "remove" and len(parts) >= 2:
                await self.remove(parts[1])

            elif cmd == "lookup" and len(parts) >= 2:
                await self.lookup(" ".join(parts[1:]))

            elif cmd == "info":
                await self.info()

            elif cmd == "test":
                count = int(parts[1]) if len(parts) > 1 else 1000
                prefix = parts[2] if len(parts) > 2 else "testkey"
                await self.distribution_test(count, prefix)

            elif cmd == "reset":
                await self.reset()

            elif cmd == "help":
                self.print_commands()

            else:
                print("Invalid command. Type 'help' for available commands.")

        except ValueError as e:
            print(f"Error: {e}")

    def url(self, *segments):
        """Build an API URL, escaping each segment so ids and keys stay opaque."""
        path = "".join("/" + quote(segment, safe="") for segment in segments)
        return URL(f"{self.api}{path}", encoded=True)

    async def _request(self, method, *segments, **kwargs):
        try:
            async with self.session.request(method, self.url(*segments), **kwargs) as resp:
                return resp.status, await resp.json()
        except aiohttp.ClientError as e:
            print(f"Network error: {e}")
            return None, None

    def _report_failure(self, action, status, result):
        if result is None:
            return
        print(f"{action} failed ({status}): {result.get('error', 'Unknown error')}")

    async def add(self, node_id: str, host: str, port: int):
        status, result = await self._request("POST", "nodes", json={"id": node_id, "host": host, "port": port})
        if status == 200:
            print(result["message"])
        else:
            self._report_failure("ADD", status, result)

    async def remove(self, node_id: str):
        status, result = await self._request("DELETE", "nodes", node_id)
        if status == 200:
            print(result["message"])
        else:
            self._report_failure("REMOVE", status, result)

    async def lookup(self, key: str):
        status, result = await self._request("GET", "nodes", "lookup", key)
        if status != 200:
            self._report_failure("LOOKUP", status, result)
            return

        data = result["data"]
        if data["found"]:
            print(f"Key '{data['key']}' -> {data['node_id']} ({data['node_address']})")
        else:
            print(f"Key '{data['key']}' has no owner (ring is empty)")

    async def info(self):
        status, result = await self._request("GET", "ring", "info")
        if status != 200:
            self._report_failure("INFO", status, result)
            return

        data = result["data"]
        print("Ring status:")
        print(f"   Physical nodes: {data['physical_node_count']}")
        print(f"   Virtual nodes: {data['virtual_node_count']}")
        print(f"   Nodes: {data['node_ids']}")
        print(f"   Average sampled keys per node: {data['average_keys_per_node']:.1f}")
        print(f"   Uniformity: {data['distribution_uniformity']:.2f}/100")
        for node_id, count in data["data_distribution"].items():
            print(f"     {node_id}: {count}")

    async def distribution_test(self, key_count: int, key_prefix: str):
        status, result = await self._request(
            "POST", "test", "distribution", json={"key_count": key_count, "key_prefix": key_prefix}
        )
        if status != 200:
            self._report_failure("TEST", status, result)
            return

        data = result["data"]
        print(result["message"])
        for node_id, count in sorted(data["node_distribution"].items()):
            print(f"   {node_id}: {count} ({data['distribution_percentages'][node_id]:.2f}%)")
        if data["uniformity_grade"]:
            print(f"   Grade: {data['uniformity_grade']}")

    async def reset(self):
        status, result = await self._request("DELETE", "nodes")
        if status == 200:
            print(result["message"])
        else:
            self._report_failure("RESET", status, result)


async def main():
    """Main entry point"""
    base_url = sys.argv[1] if len(sys.argv) > 1 else None

    shell = RingShell(base_url)
    await shell.start()


if __name__ == "__main__":
    asyncio.run(main())
