"""
Test: Console walkthrough results.

Run with: pytest tests/test_demo.py
"""

from Hash_Ring import hash_to_position

import demo


def test_consistent_hashing_walkthrough(capsys):
    result = demo.demonstrate_consistent_hashing(sample_count=2000)

    assert set(result['before']) == set(demo.EVENTS)
    assert len(demo.EVENTS) - len(result['moved']) >= 3
    for event in result['moved']:
        assert result['after'][event] == 'server4'

    assert set(result['three_servers']) == {'server1', 'server2', 'server3'}
    assert set(result['four_servers']) == {'server1', 'server2', 'server3', 'server4'}
    assert set(result['without_server2']) == {'server1', 'server3', 'server4'}
    for distribution in (result['three_servers'], result['four_servers'], result['without_server2']):
        assert sum(distribution.values()) == 2000

    output = capsys.readouterr().out
    assert 'Consistent Hashing Demo' in output
    assert 'Ring state:' in output


def test_simple_hash_server():
    position = hash_to_position('event_1234')
    assert demo.simple_hash_server('event_1234', 3) == f"server{position % 3 + 1}"


def test_simple_hashing_comparison(capsys):
    assignments3, assignments4, moved = demo.demonstrate_simple_hashing()

    expected_moved = sum(
        1 for event in demo.EVENTS
        if demo.simple_hash_server(event, 3) != demo.simple_hash_server(event, 4)
    )
    assert moved == expected_moved
    assert set(assignments3.values()) <= {'server1', 'server2', 'server3'}
    assert set(assignments4.values()) <= {'server1', 'server2', 'server3', 'server4'}
    assert f"Result: {moved}/{len(demo.EVENTS)} events moved" in capsys.readouterr().out


def test_walkthrough_with_no_sample_keys():
    result = demo.demonstrate_consistent_hashing(sample_count=0)
    assert result['three_servers'] == {'server1': 0, 'server2': 0, 'server3': 0}
    assert set(result['before']) == set(demo.EVENTS)
