import hashlib
import threading

from sortedcontainers import SortedDict

RING_SIZE = 2 ** 32  # Positions live in [0, 2^32)


class NoServersAvailable(LookupError):
    """Raised when a lookup is attempted on a ring with no registered servers."""


def hash_to_position(data):
    """
    Hashes a key to a position on the ring.

    Args:
        data (str | bytes): The key to hash. Strings are UTF-8 encoded first.

    Returns:
        int: An unsigned 32-bit position taken from the first 8 hex characters
             of the MD5 digest.
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    # MD5 is used for speed and spread, not for security
    return int(hashlib.md5(data).hexdigest()[:8], 16)


def sample_keys(count, prefix="key_"):
    """Builds `count` deterministic sample keys: key_0, key_1, ..."""
    return [f"{prefix}{i}" for i in range(count)]


class HashRing:
    """
    Implements a consistent hash ring with virtual nodes.

    Each physical server is placed on the ring `vnodes_per_server` times, at the
    positions of "<server_id>:<i>". A key belongs to the first virtual node at or
    after its own position, wrapping around past the largest position.

    The position index is a SortedDict, so the ordered view of positions can never
    drift out of sync with the position -> server mapping. All public methods hold
    the ring's lock, which makes each membership change a single transaction for
    concurrent readers.
    """

    def __init__(self, vnodes_per_server=150, servers=None):
        """
        Initializes the hash ring.

        Args:
            vnodes_per_server (int, optional): The number of virtual nodes for each
                                               physical server. Defaults to 150.
            servers (iterable, optional): Server IDs to add, in order. Defaults to None.

        Raises:
            ValueError: If vnodes_per_server is not a positive integer.
        """
        if (isinstance(vnodes_per_server, bool)
                or not isinstance(vnodes_per_server, int)
                or vnodes_per_server < 1):
            raise ValueError(f"vnodes_per_server must be a positive integer, got {vnodes_per_server!r}")

        self.vnodes_per_server = vnodes_per_server
        self._ring = SortedDict()  # position -> server_id, iterated in position order
        self._servers = set()
        self._lock = threading.RLock()

        if servers:
            for server_id in servers:
                self.add_server(server_id)

    @staticmethod
    def hash(key):
        """Same as the module-level hash_to_position."""
        return hash_to_position(key)

    def _vnode_positions(self, server_id):
        for i in range(self.vnodes_per_server):
            yield hash_to_position(f"{server_id}:{i}")

    # --- Membership ---

    def add_server(self, server_id):
        """
        Adds a physical server and its virtual nodes to the ring.

        Adding a server that is already registered does nothing. A virtual node that
        lands on a position another server already holds takes that position over.

        Args:
            server_id (str): The unique identifier for the server (e.g., 'server1').
        """
        with self._lock:
            if server_id in self._servers:
                return

            self._servers.add(server_id)
            for position in self._vnode_positions(server_id):
                self._ring[position] = server_id

    def remove_server(self, server_id):
        """
        Removes a physical server and all of its virtual nodes from the ring.

        Removing an unknown server does nothing. Positions that were taken over by
        another server's virtual node are left with their current owner.

        Args:
            server_id (str): The unique identifier for the server to be removed.
        """
        with self._lock:
            if server_id not in self._servers:
                return

            self._servers.discard(server_id)
            for position in self._vnode_positions(server_id):
                if self._ring.get(position) == server_id:
                    del self._ring[position]

    # --- Lookup ---

    def get_server(self, key):
        """
        Finds the physical server responsible for a given key.

        Args:
            key (str | bytes): The key to be looked up (e.g., an event or session ID).

        Returns:
            str: The ID of the responsible server.

        Raises:
            NoServersAvailable: If no servers are registered.
        """
        with self._lock:
            if not self._ring:
                raise NoServersAvailable("No servers available")

            position = hash_to_position(key)

            # First virtual node at or after the key's position
            index = self._ring.bisect_left(position)

            # Past the last virtual node, wrap around to the first
            if index == len(self._ring):
                index = 0

            return self._ring.peekitem(index)[1]

    def get_distribution(self, keys):
        """
        Counts how many of the given keys land on each server.

        Args:
            keys (iterable): Sample keys to look up.

        Returns:
            dict: server_id -> number of keys assigned. Every registered server is
                  present, with 0 if no key landed on it.
        """
        with self._lock:
            distribution = {server_id: 0 for server_id in self._servers}
            for key in keys:
                distribution[self.get_server(key)] += 1
            return distribution

    # --- Introspection ---

    @property
    def servers(self):
        with self._lock:
            return frozenset(self._servers)

    def positions(self):
        """Returns (position, server_id) pairs in ring order."""
        with self._lock:
            return list(self._ring.items())

    def virtual_nodes(self, server_id):
        """Returns the sorted positions currently owned by a server."""
        with self._lock:
            return [position for position, owner in self._ring.items() if owner == server_id]

    def coverage(self):
        """
        Measures how much of the hash space each server owns.

        A virtual node owns the arc from the previous position (exclusive) up to its
        own position (inclusive); the first one also owns the wrap-around segment.

        Returns:
            dict: server_id -> number of ring positions owned. The values add up to
                  RING_SIZE whenever the ring is populated.
        """
        with self._lock:
            coverage = {server_id: 0 for server_id in self._servers}
            positions = list(self._ring.keys())
            for i, position in enumerate(positions):
                if i == 0:
                    arc = position + RING_SIZE - positions[-1]
                else:
                    arc = position - positions[i - 1]
                coverage[self._ring[position]] += arc
            return coverage

    def __len__(self):
        with self._lock:
            return len(self._servers)

    def __contains__(self, server_id):
        with self._lock:
            return server_id in self._servers

    def __iter__(self):
        with self._lock:
            return iter(list(self._servers))

    def __repr__(self):
        return f"HashRing(vnodes_per_server={self.vnodes_per_server}, servers={sorted(self.servers)})"
