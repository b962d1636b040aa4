import bisect


class HashRing:
    """Sorted keyspace positions, each owned by one node.

    Not thread-safe on its own; ``RingManager`` serializes access.
    """

    def __init__(self):
        self.owners = {}  # position -> Node
        self.sorted_positions = []

    def insert(self, position, node):
        if position not in self.owners:
            bisect.insort(self.sorted_positions, position)
        self.owners[position] = node

    def remove(self, position):
        if position not in self.owners:
            return
        del self.owners[position]
        idx = bisect.bisect_left(self.sorted_positions, position)
        del self.sorted_positions[idx]

    def owner_at(self, position):
        return self.owners.get(position)

    def resolve(self, query_position):
        if not self.sorted_positions:
            return None

        # first position clockwise from the query, wrapping past the top
        idx = bisect.bisect_left(self.sorted_positions, query_position)
        if idx == len(self.sorted_positions):
            idx = 0
        return self.owners[self.sorted_positions[idx]]

    def positions(self):
        return list(self.sorted_positions)

    def snapshot(self):
        return {position: self.owners[position].id for position in self.sorted_positions}

    def clear(self):
        self.owners.clear()
        self.sorted_positions.clear()

    def __len__(self):
        return len(self.sorted_positions)

    def __contains__(self, position):
        return position in self.owners
