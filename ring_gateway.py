import os
import sys
import subprocess
import threading
from functools import wraps

from flask import Flask, request, jsonify

from Hash_Ring import HashRing, NoServersAvailable, sample_keys
from terminal_colors import TC

# --- Configuration ---
GATEWAY_PORT = int(os.environ.get("RING_GATEWAY_PORT", 8000))
VIRTUAL_NODES_PER_SERVER = int(os.environ.get("VIRTUAL_NODES_PER_SERVER", 150))
DISTRIBUTION_SAMPLE_SIZE = int(os.environ.get("DISTRIBUTION_SAMPLE_SIZE", 10000))
MAX_DISTRIBUTION_SAMPLES = int(os.environ.get("MAX_DISTRIBUTION_SAMPLES", 1000000))
USE_SSL = os.environ.get("RING_GATEWAY_USE_SSL", "0") == "1"

# --- Security Configuration ---
ADMIN_TOKEN = os.environ.get("RING_ADMIN_TOKEN", "password")  # CHANGE THIS IN PRODUCTION

# --- Flask App Initialization ---
app = Flask(__name__)
# Servers register themselves after startup, so the ring starts empty
hash_ring = HashRing(vnodes_per_server=VIRTUAL_NODES_PER_SERVER)

# Serializes check-then-act sequences (membership test followed by add/remove)
state_lock = threading.Lock()


# --- Authentication Decorator ---
def require_admin_token(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if request.headers.get('X-Admin-Token') != ADMIN_TOKEN:
            return jsonify({"error": "Unauthorized: Invalid or missing admin token"}), 401
        return f(*args, **kwargs)
    return decorated_function


def _server_id_from_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or data.get('server_id') in (None, ''):
        return None
    return str(data['server_id'])


# --- Lookup Endpoints ---

@app.route('/locate/<path:key>', methods=['GET'])
def locate(key):
    """Returns the ring position of a key and the server that owns it."""
    try:
        server = hash_ring.get_server(key)
    except NoServersAvailable:
        return jsonify({"error": "No servers registered on the ring."}), 503

    return jsonify({"key": key, "position": hash_ring.hash(key), "server": server}), 200


@app.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok", "server_count": len(hash_ring)}), 200


# --- Membership Endpoints ---

@app.route('/register_server', methods=['POST'])
@require_admin_token
def register_server():
    """
    Adds a server to the ring.
    Expected JSON: {"server_id": "server1"}
    """
    server_id = _server_id_from_body()
    if server_id is None:
        return jsonify({"error": "Invalid request: 'server_id' missing"}), 400

    with state_lock:
        if server_id in hash_ring:
            print(TC.warning(f"Server {server_id} already registered."))
            message = f"Server {server_id} already registered"
        else:
            hash_ring.add_server(server_id)
            print(TC.success(f"Registered server {server_id} with {hash_ring.vnodes_per_server} virtual nodes. "
                             f"Current servers: {sorted(hash_ring.servers)}"))
            message = f"Server {server_id} registered successfully"
        active_servers = sorted(hash_ring.servers)

    return jsonify({"message": message, "active_servers": active_servers}), 200


@app.route('/deregister_server', methods=['POST'])
@require_admin_token
def deregister_server():
    """Removes a server and all of its virtual nodes from the ring."""
    server_id = _server_id_from_body()
    if server_id is None:
        return jsonify({"error": "Invalid request: 'server_id' missing"}), 400

    with state_lock:
        if server_id in hash_ring:
            hash_ring.remove_server(server_id)
            print(TC.success(f"Server {server_id} deregistered. Current servers: {sorted(hash_ring.servers)}"))
            return jsonify({"message": f"Server {server_id} deregistered successfully.",
                            "active_servers": sorted(hash_ring.servers)}), 200

    print(TC.warning(f"Server {server_id} doesn't exist."))
    return jsonify({"error": f"Server {server_id} not found."}), 404


# --- Admin Endpoints ---

@app.route('/admin/distribution', methods=['GET'])
@require_admin_token
def distribution():
    """
    Looks up `samples` synthetic keys (key_0, key_1, ...) and reports how many
    landed on each server.
    """
    try:
        sample_count = int(request.args.get('samples', DISTRIBUTION_SAMPLE_SIZE))
    except ValueError:
        return jsonify({"error": "'samples' must be an integer"}), 400
    if sample_count < 1:
        return jsonify({"error": "'samples' must be positive"}), 400
    if sample_count > MAX_DISTRIBUTION_SAMPLES:
        return jsonify({"error": f"'samples' must be at most {MAX_DISTRIBUTION_SAMPLES}"}), 400

    try:
        counts = hash_ring.get_distribution(sample_keys(sample_count))
    except NoServersAvailable:
        return jsonify({"error": "No servers registered on the ring."}), 503

    return jsonify({
        "sample_count": sample_count,
        "distribution": {
            server: {"count": count, "percentage": round(count / sample_count * 100, 1)}
            for server, count in sorted(counts.items())
        },
    }), 200


@app.route('/admin/ring', methods=['GET'])
@require_admin_token
def show_ring():
    """Dumps every virtual node in ring order, plus each server's share of the hash space."""
    with state_lock:
        positions = hash_ring.positions()
        coverage = hash_ring.coverage()
        servers = sorted(hash_ring.servers)

    return jsonify({
        "vnodes_per_server": hash_ring.vnodes_per_server,
        "servers": servers,
        "positions": [{"position": position, "server": server} for position, server in positions],
        "coverage": coverage,
    }), 200


# --- SSL Context for HTTPS ---
# For a local test a self-signed certificate is enough. You can generate one with:
# openssl req -x509 -newkey rsa:4096 -nodes -out cert.pem -keyout key.pem -days 365 -subj "/CN=localhost"

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
CERT_FILE = os.path.join(SCRIPT_DIR, 'cert.pem')
KEY_FILE = os.path.join(SCRIPT_DIR, 'key.pem')


def generate_self_signed_cert():
    """Generates a self-signed certificate for local testing if not present."""
    if os.path.exists(CERT_FILE) and os.path.exists(KEY_FILE):
        return True

    print(f"Generating self-signed SSL certificate ({CERT_FILE}, {KEY_FILE})...")
    command = [
        'openssl', 'req', '-x509', '-newkey', 'rsa:4096', '-nodes',
        '-out', CERT_FILE, '-keyout', KEY_FILE,
        '-days', '365', '-subj', '/CN=localhost'
    ]
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as e:
        print(TC.error("--- SSL Certificate Generation Failed ---"))
        print(f"Error: {e}")
        print("Please ensure 'openssl' is installed and accessible in your system's PATH,")
        print("or start the gateway with RING_GATEWAY_USE_SSL=0.")
        return False

    print(TC.success("Certificate generated successfully."))
    return True


# --- Main Execution ---
if __name__ == '__main__':
    ssl_context = None
    if USE_SSL:
        if not generate_self_signed_cert():
            sys.exit(1)
        ssl_context = (CERT_FILE, KEY_FILE)

    scheme = "HTTPS" if ssl_context else "HTTP"
    print(TC.heading(f"Starting Hash Ring Gateway on {scheme} port {GATEWAY_PORT}..."))
    print(f"Virtual nodes per server: {VIRTUAL_NODES_PER_SERVER}")
    print(f"Admin Token: {ADMIN_TOKEN[:4]}... (use this in X-Admin-Token header for ring management)")

    # For production, use a WSGI server like Gunicorn instead of the development server.
    app.run(host='0.0.0.0', port=GATEWAY_PORT, ssl_context=ssl_context, threaded=True)
