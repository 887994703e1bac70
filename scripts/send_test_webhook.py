"""Sign a JSON event with the endpoint secret and post it to `/webhook`.

Useful for exercising signature verification without the Stripe CLI.
"""

import argparse
import hashlib
import hmac
import json
import time
from pathlib import Path
from uuid import uuid4

import httpx


def sign(payload: str, secret: str, timestamp: int | None = None) -> str:
    """Build a `stripe-signature` header value (scheme v1) for `payload`."""

    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def main() -> None:
    """Parse CLI args, sign one event and post it."""

    parser = argparse.ArgumentParser(description="Post a signed test event to the webhook.")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--secret", required=True, help="Webhook endpoint secret (whsec_...)")
    parser.add_argument("--type", dest="event_type", default="payment_intent.succeeded")
    parser.add_argument("--file", dest="json_file", default=None, help="Path to a full event JSON")
    args = parser.parse_args()

    if args.json_file:
        event = json.loads(Path(args.json_file).read_text())
    else:
        event = {
            "id": f"evt_test_{uuid4().hex[:16]}",
            "object": "event",
            "type": args.event_type,
            "data": {"object": {"id": f"pi_test_{uuid4().hex[:16]}", "object": "payment_intent"}},
        }
    payload = json.dumps(event)
    resp = httpx.post(
        f"{args.base_url}/webhook",
        content=payload,
        headers={"stripe-signature": sign(payload, args.secret), "content-type": "application/json"},
    )
    print(f"status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    main()
