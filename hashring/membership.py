class MembershipTable:
    """Registered physical nodes keyed by id, in registration order."""

    def __init__(self):
        self.nodes = {}

    def get(self, node_id):
        return self.nodes.get(node_id)

    def add(self, node):
        if node.id in self.nodes:
            return False
        self.nodes[node.id] = node
        return True

    def remove(self, node_id):
        return self.nodes.pop(node_id, None)

    def clear(self):
        self.nodes.clear()

    def size(self):
        return len(self.nodes)

    def ids(self):
        return list(self.nodes.keys())

    def __contains__(self, node_id):
        return node_id in self.nodes
