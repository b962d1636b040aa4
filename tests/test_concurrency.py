import concurrent.futures
import threading

from hashring.node import Node
from hashring.ring_manager import RingManager

VIRTUAL_NODES = 20


def test_readers_never_see_half_registered_nodes():
    ring = RingManager(virtual_nodes_per_node=VIRTUAL_NODES)
    ring.register_node(Node("anchor"))
    stop = threading.Event()
    seen = set()
    errors = []

    def churn():
        i = 0
        while not stop.is_set():
            node_id = f"churn-{i % 8}"
            ring.register_node(Node(node_id))
            ring.deregister_node(node_id)
            i += 1

    def read():
        try:
            for i in range(300):
                info = ring.ring_info()
                # ring and membership are updated together
                assert info.virtual_node_count == info.physical_node_count * VIRTUAL_NODES
                node = ring.resolve(f"reader-key-{i}")
                seen.add(node.id)
        except Exception as e:
            errors.append(e)

    writer = threading.Thread(target=churn)
    writer.start()
    try:
        readers = [threading.Thread(target=read) for _ in range(4)]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()
    finally:
        stop.set()
        writer.join()

    assert errors == []
    assert seen <= {"anchor"} | {f"churn-{i}" for i in range(8)}
    assert ring.node_ids() == ["anchor"]


def test_concurrent_registration_of_distinct_nodes():
    ring = RingManager(virtual_nodes_per_node=VIRTUAL_NODES)

    with concurrent.futures.ThreadPoolExecutor(max_workers=16) as executor:
        list(executor.map(lambda i: ring.register_node(Node(f"node-{i}")), range(64)))

    assert ring.node_count() == 64
    assert ring.ring_info().virtual_node_count == 64 * VIRTUAL_NODES


def test_concurrent_duplicate_registration_keeps_one_entry():
    ring = RingManager(virtual_nodes_per_node=VIRTUAL_NODES)

    with concurrent.futures.ThreadPoolExecutor(max_workers=16) as executor:
        list(executor.map(lambda _: ring.register_node(Node("same")), range(50)))

    assert ring.node_count() == 1
    assert ring.ring_info().virtual_node_count == VIRTUAL_NODES


def test_concurrent_lookups_agree():
    ring = RingManager()
    for i in range(5):
        ring.register_node(Node(f"server{i}"))
    keys = [f"key_{i}" for i in range(200)]
    expected = [ring.resolve(key).id for key in keys]

    def lookup_all(_):
        return [ring.resolve(key).id for key in keys]

    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lookup_all, range(16)))

    assert all(result == expected for result in results)
