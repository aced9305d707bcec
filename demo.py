"""
Walkthrough of consistent hashing against plain hash-mod-N assignment.

Run with: python demo.py
"""
import os

from Hash_Ring import HashRing, hash_to_position, sample_keys
from terminal_colors import TC

DEMO_VIRTUAL_NODES = 3  # Few virtual nodes keep the printed ring readable
DISTRIBUTION_SAMPLE_SIZE = int(os.environ.get("DISTRIBUTION_SAMPLE_SIZE", 10000))

EVENTS = [
    "event_1234",
    "event_5678",
    "event_9999",
    "event_4567",
    "event_8888",
]


def print_distribution(distribution, sample_count):
    for server, count in sorted(distribution.items()):
        percentage = count / sample_count * 100 if sample_count else 0.0
        print(f"{TC.server(server)}: {count} keys ({percentage:.1f}%)")


def show_ring(ring):
    """Prints every virtual node in ring order."""
    print("\nRing state:")
    for position, server in ring.positions():
        print(f"Position {position}: {TC.server(server)}")


def assign_events(ring, events):
    """Looks up each event and prints its hash and server."""
    assignments = {}
    for event in events:
        server = ring.get_server(event)
        assignments[event] = server
        print(f"{event} (hash: {ring.hash(event)}) -> {TC.server(server)}")
    return assignments


def demonstrate_consistent_hashing(vnodes_per_server=DEMO_VIRTUAL_NODES, sample_count=DISTRIBUTION_SAMPLE_SIZE):
    """
    Builds a ring of three servers, then adds a fourth and removes one, showing
    how the canonical events and a large sample of keys are redistributed.

    Returns:
        dict: 'before' and 'after' event assignments, the list of 'moved' events and
              the three distributions ('three_servers', 'four_servers', 'without_server2').
    """
    print(TC.heading("=== Consistent Hashing Demo ===\n"))
    keys = sample_keys(sample_count)
    ring = HashRing(vnodes_per_server)

    print(TC.heading("1. Adding initial servers..."))
    for server in ("server1", "server2", "server3"):
        ring.add_server(server)
        print(TC.success(f"Added server {server} with {ring.vnodes_per_server} virtual nodes"))
    show_ring(ring)

    print(TC.heading("\n2. Testing key distribution with 3 servers:"))
    before = assign_events(ring, EVENTS)

    print(TC.heading(f"\n3. Distribution across {sample_count:,} keys:"))
    three_servers = ring.get_distribution(keys)
    print_distribution(three_servers, sample_count)

    print(TC.heading("\n4. Adding server4..."))
    ring.add_server("server4")
    print(TC.success(f"Added server server4 with {ring.vnodes_per_server} virtual nodes"))

    print(TC.heading("\n5. Same events after adding server4:"))
    after = {}
    moved = []
    for event in EVENTS:
        server = ring.get_server(event)
        after[event] = server
        if server != before[event]:
            moved.append(event)
            status = TC.warning(f"(MOVED from {before[event]})")
        else:
            status = TC.colorize("(stayed)", TC.GRAY)
        print(f"{event} (hash: {ring.hash(event)}) -> {TC.server(server)} {status}")
    print(f"\n{len(moved)}/{len(EVENTS)} events moved")

    print(TC.heading("\n6. New distribution with 4 servers:"))
    four_servers = ring.get_distribution(keys)
    print_distribution(four_servers, sample_count)

    print(TC.heading("\n7. Removing server2..."))
    ring.remove_server("server2")
    print(TC.success("Removed server server2"))

    print(TC.heading("\n8. Distribution after removing server2:"))
    without_server2 = ring.get_distribution(keys)
    print_distribution(without_server2, sample_count)

    return {
        "before": before,
        "after": after,
        "moved": moved,
        "three_servers": three_servers,
        "four_servers": four_servers,
        "without_server2": without_server2,
    }


def simple_hash_server(key, num_servers):
    """Naive placement: hash the key and take it modulo the server count."""
    return f"server{(hash_to_position(key) % num_servers) + 1}"


def demonstrate_simple_hashing(events=EVENTS):
    """
    Shows how many events change servers under hash-mod-N when going from 3 to 4 servers.

    Returns:
        tuple: (assignments with 3 servers, assignments with 4 servers, moved count)
    """
    print(TC.heading("\n=== Simple Hash + Modulo (for comparison) ===\n"))

    print("With 3 servers:")
    assignments3 = {}
    for event in events:
        assignments3[event] = simple_hash_server(event, 3)
        print(f"{event} -> {TC.server(assignments3[event])}")

    print("\nWith 4 servers:")
    assignments4 = {}
    moved = 0
    for event in events:
        server = simple_hash_server(event, 4)
        assignments4[event] = server
        if assignments3[event] != server:
            print(f"{event} -> {TC.server(server)} {TC.warning(f'(MOVED from {assignments3[event]})')}")
            moved += 1
        else:
            print(f"{event} -> {TC.server(server)} (stayed)")

    percentage = moved / len(events) * 100 if events else 0.0
    print(f"\nResult: {moved}/{len(events)} events moved ({percentage:.1f}%)")
    return assignments3, assignments4, moved


if __name__ == '__main__':
    demonstrate_consistent_hashing()
    demonstrate_simple_hashing()
