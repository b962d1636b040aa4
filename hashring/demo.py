#!/usr/bin/env python3
"""Console walkthrough of the hash ring: an automatic tour, then a prompt."""

import argparse
import sys

from .config import RingConfig, configure_logging, positive_int
from .node import Node
from .ring_manager import RingManager
from .stats import DistributionReport, capture_mapping, moved_keys

SAMPLE_DATA_KEYS = [
    "user:123", "user:456", "user:789", "user:abc", "user:def",
    "product:laptop", "product:phone", "product:tablet", "product:watch",
    "session:sess_001", "session:sess_002", "session:sess_003",
    "cache:homepage", "cache:profile", "cache:dashboard",
]
MOVEMENT_KEYS = [f"sample_{i}" for i in range(100)]
ACCEPTABLE_MOVEMENT = 30.0


class Walkthrough:
    def __init__(self, ring=None, input_func=None):
        self.ring = ring if ring is not None else RingManager()
        self.input = input_func or input

    def run(self, interactive=True):
        print("=" * 60)
        print("           Consistent Hashing Walkthrough")
        print("=" * 60)

        self.run_automatic()
        if interactive:
            self.pause()
            self.run_interactive()

    def run_automatic(self):
        print("\nStarting the automatic walkthrough...\n")

        print("Step 1: register three nodes")
        self.ring.register_node(Node("seoul", "seoul.example.com", 8080))
        self.ring.register_node(Node("busan", "busan.example.com", 8080))
        self.ring.register_node(Node("daejeon", "daejeon.example.com", 8080))
        self.print_ring_status()

        print("\nStep 2: where do the sample keys land?")
        self.print_data_placement()

        print("\nStep 3: add a node and measure key movement")
        print("Adding gwangju...")
        before = capture_mapping(self.ring, MOVEMENT_KEYS)
        self.ring.register_node(Node("gwangju", "gwangju.example.com", 8080))
        after = capture_mapping(self.ring, MOVEMENT_KEYS)
        self.print_movement("node addition", before, after)

        print("\nStep 4: remove a node and measure key movement")
        print("Removing busan...")
        before = capture_mapping(self.ring, MOVEMENT_KEYS)
        self.ring.deregister_node("busan")
        after = capture_mapping(self.ring, MOVEMENT_KEYS)
        self.print_movement("node removal", before, after)

        print("\nStep 5: final ring state")
        self.print_ring_status()

        print("\nAutomatic walkthrough complete!")
        print("Takeaways:")
        print("  - keys spread evenly across nodes")
        print("  - adding or removing a node moves only a small share of keys")
        print("  - virtual nodes smooth out the distribution")

    def run_interactive(self):
        print("\n" + "=" * 60)
        print("           Interactive mode")
        print("=" * 60)

        commands = {
            "1": self.add_node, "add": self.add_node,
            "2": self.remove_node, "remove": self.remove_node,
            "3": self.lookup_key, "lookup": self.lookup_key,
            "4": self.print_ring_status, "status": self.print_ring_status,
            "5": self.distribution_test, "test": self.distribution_test,
        }

        while True:
            print("\nChoose a command:")
            print("1. Add node (add)")
            print("2. Remove node (remove)")
            print("3. Look up key (lookup)")
            print("4. Ring status (status)")
            print("5. Distribution test (test)")
            print("6. Exit (exit)")

            try:
                command = self.input("\n> ").strip().lower()
            except (EOFError, KeyboardInterrupt):
                print()
                return

            if command in ("6", "exit"):
                print("Goodbye!")
                return

            action = commands.get(command)
            if action is None:
                print("Unknown command, please try again.")
            else:
                action()

    def add_node(self):
        node_id = self.input("Node id: ").strip()
        if not node_id:
            print("Node id is required.")
            return
        self.ring.register_node(Node(node_id))
        print(f"Node added: {node_id}")

    def remove_node(self):
        node_id = self.input("Node id to remove: ").strip()
        if not node_id:
            print("Node id is required.")
            return
        self.ring.deregister_node(node_id)
        print(f"Node removed: {node_id}")

    def lookup_key(self):
        key = self.input("Key to look up: ").strip()
        if not key:
            print("Key is required.")
            return
        node = self.ring.resolve(key)
        if node is None:
            print("No owner found (the ring has no nodes)")
        else:
            print(f"Key '{key}' is owned by {node.id}")

    def distribution_test(self):
        if self.ring.node_count() == 0:
            print("Add some nodes before running a distribution test.")
            return

        raw = self.input("Number of keys to test (default 1000): ").strip()
        key_count = 1000
        if raw:
            try:
                key_count = int(raw)
            except ValueError:
                print("Not a number, using the default of 1000.")
        if key_count < 1:
            print("Key count must be positive, using the default of 1000.")
            key_count = 1000

        distribution = self.ring.distribution(f"testkey_{i}" for i in range(key_count))
        report = DistributionReport.build(key_count, distribution)

        print(f"\nDistribution of {key_count} keys:")
        for node_id, count in sorted(report.node_distribution.items()):
            print(f"  {node_id}: {count} keys ({report.distribution_percentages[node_id]:.2f}%)")
        print(f"Uniformity score: {report.uniformity_score:.2f}/100 ({report.uniformity_grade})")

    def print_data_placement(self):
        placement = {}
        for key in SAMPLE_DATA_KEYS:
            node = self.ring.resolve(key)
            if node is not None:
                placement.setdefault(node.id, []).append(key)

        print("Data placement:")
        for node_id, keys in placement.items():
            print(f"  {node_id} ({len(keys)}): {', '.join(keys)}")

    def print_movement(self, operation, before, after):
        moved = len(moved_keys(before, after))
        total = len(before)
        percentage = moved / total * 100 if total else 0.0

        print(f"Impact of {operation}:")
        print(f"  total keys: {total}")
        print(f"  moved keys: {moved}")
        print(f"  moved share: {percentage:.2f}%")

        if percentage < ACCEPTABLE_MOVEMENT:
            print("Minimal movement - consistent hashing is doing its job")
        else:
            print("More movement than expected")

    def print_ring_status(self):
        info = self.ring.ring_info()

        print("\nCurrent ring:")
        print(f"  physical nodes: {info.physical_node_count}")
        print(f"  virtual nodes: {info.virtual_node_count}")
        print(f"  nodes: {info.node_ids}")

        if info.data_distribution:
            print("  sampled distribution:")
            for node_id, count in info.data_distribution.items():
                print(f"    {node_id}: {count}")

    def pause(self):
        try:
            self.input("\nPress Enter to continue...")
        except (EOFError, KeyboardInterrupt):
            pass


def main(argv=None):
    parser = argparse.ArgumentParser(description="Consistent hashing walkthrough")
    parser.add_argument("--virtual-nodes", type=positive_int, default=None, help="virtual positions per node")
    parser.add_argument("--no-interactive", action="store_true", help="run the automatic tour only")
    parser.add_argument("--log-level", default="WARNING", help="logging level")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    config = RingConfig.from_env()
    virtual_nodes = config.virtual_nodes if args.virtual_nodes is None else args.virtual_nodes

    Walkthrough(RingManager(virtual_nodes)).run(interactive=not args.no_interactive)
    return 0


if __name__ == "__main__":
    sys.exit(main())
