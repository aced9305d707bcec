import os
import sys
import json
from urllib.parse import quote

import requests

from terminal_colors import TC

# --- Configuration ---
GATEWAY_URL = os.environ.get("RING_GATEWAY_URL", "http://localhost:8000")  # The client only needs to know the gateway.
REQUEST_TIMEOUT = 5  # seconds
VERIFY_TLS = os.environ.get("RING_GATEWAY_VERIFY_TLS", "0") == "1"  # Gateway uses a self-signed cert by default


def _report(response, title="Gateway Response"):
    """Prints a gateway response and returns its decoded JSON body."""
    print(f"\n--- {title} ---")
    print(f"Status Code: {response.status_code}")
    try:
        data = response.json()
    except ValueError:
        print(TC.error("Gateway returned a non-JSON body."))
        print(response.text)
        return None
    print(json.dumps(data, indent=2))
    return data


def _connection_error(url, e):
    print(TC.error(f"\nError: Could not connect to the gateway at {url}."))
    print("Please ensure ring_gateway.py is running and accessible.")
    print(f"Details: {e}")


def locate(key):
    """Asks the gateway which server owns a key."""
    url = f"{GATEWAY_URL}/locate/{quote(key, safe='')}"
    print(f"Sending GET request to: {url}")
    try:
        response = requests.get(url, verify=VERIFY_TLS, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        _connection_error(url, e)
        return None

    data = _report(response)
    if response.status_code == 503:
        print(TC.warning("The ring is empty. Register a server first."))
    return data


def add_server(server_id, admin_token):
    """Registers a server on the gateway's ring."""
    return _membership_call('register_server', server_id, admin_token)


def remove_server(server_id, admin_token):
    """Removes a server from the gateway's ring."""
    return _membership_call('deregister_server', server_id, admin_token)


def _membership_call(endpoint, server_id, admin_token):
    url = f"{GATEWAY_URL}/{endpoint}"
    headers = {'X-Admin-Token': admin_token, 'Content-Type': 'application/json'}
    print(f"Sending POST request to: {url} with server_id={server_id}")
    try:
        response = requests.post(url, json={'server_id': server_id}, headers=headers,
                                 verify=VERIFY_TLS, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        _connection_error(url, e)
        return None
    return _report(response)


def get_distribution(admin_token, samples=None):
    """Fetches the per-server key distribution over the gateway's sample keys."""
    url = f"{GATEWAY_URL}/admin/distribution"
    params = {'samples': samples} if samples is not None else None
    headers = {'X-Admin-Token': admin_token}
    print(f"Sending GET request to: {url}")
    try:
        response = requests.get(url, params=params, headers=headers, verify=VERIFY_TLS, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        _connection_error(url, e)
        return None
    return _report(response)


def show_ring(admin_token):
    """Fetches every virtual node position on the gateway's ring."""
    url = f"{GATEWAY_URL}/admin/ring"
    headers = {'X-Admin-Token': admin_token}
    print(f"Sending GET request to: {url}")
    try:
        response = requests.get(url, headers=headers, verify=VERIFY_TLS, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        _connection_error(url, e)
        return None
    return _report(response, title="Ring State")


def print_usage():
    """Prints the command-line usage instructions."""
    print("--- Hash Ring Client ---")
    print("Usage:")
    print("  python client.py locate <key>")
    print("\nAdmin Commands:")
    print("  python client.py add-server <server_id> <admin_token>")
    print("  python client.py remove-server <server_id> <admin_token>")
    print("  python client.py distribution <admin_token> [samples]")
    print("  python client.py show-ring <admin_token>")
    print("\nExamples:")
    print("  python client.py add-server server1 password")
    print("  python client.py locate event_1234")


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print_usage()
        return 1

    command = args[0].lower()

    if command == 'locate' and len(args) == 2:
        locate(args[1])
    elif command == 'add-server' and len(args) == 3:
        add_server(args[1], args[2])
    elif command == 'remove-server' and len(args) == 3:
        remove_server(args[1], args[2])
    elif command == 'distribution' and len(args) in (2, 3):
        if len(args) == 3 and not args[2].isdigit():
            print(TC.error(f"Error: samples must be a positive integer, got '{args[2]}'.\n"))
            print_usage()
            return 1
        get_distribution(args[1], int(args[2]) if len(args) == 3 else None)
    elif command == 'show-ring' and len(args) == 2:
        show_ring(args[1])
    else:
        print(TC.error(f"Error: Invalid command or number of arguments for '{command}'.\n"))
        print_usage()
        return 1
    return 0


if __name__ == '__main__':
    if not VERIFY_TLS:
        # Suppress the warning about insecure requests due to verify=False
        import urllib3
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    sys.exit(main())
