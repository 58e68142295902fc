import os
import json
import requests
from dotenv import load_dotenv

# Load .env variables
load_dotenv()

# Where the service is running
BASE = os.getenv("HOOKBIN_URL", "http://127.0.0.1:3000").rstrip("/")

# Payload to send
payload = {
    "event": "order.created",
    "data": {"id": 1042, "total": "19.99", "currency": "EUR"}
}

# Ask for a fresh inbox
resp = requests.post(f"{BASE}/api/tokens", timeout=10)
resp.raise_for_status()
token = resp.json()
print("Token:", token["token"])
print("Webhook URL:", token["webhook_url"])

# Send a webhook to it
resp = requests.post(
    f"{BASE}/{token['token']}",
    params=[("source", "script"), ("attempt", "1")],
    headers={
        "X-Event-Type": "order.created",
        "Content-Type": "application/json"
    },
    data=json.dumps(payload).encode("utf-8"),
    timeout=10
)
print("Status:", resp.status_code)
print("Response:", resp.json())

# Read back what was captured
resp = requests.get(f"{BASE}/{token['token']}/log/5", timeout=10)
print(json.dumps(resp.json(), indent=2))
