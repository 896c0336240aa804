#!/usr/bin/env python3
"""
Basic usage examples for the Volar client library.

This script demonstrates how to list and manage resources on a Volar
installation with a signed api user.

    VOLAR_API_KEY=... VOLAR_SECRET=... VOLAR_SITE=... python example_usage.py [poster.jpg]
"""

import json
import logging
import os
import sys

from volar_client import VolarClient, VolarError, build_signature


def main():
    """Run basic usage examples."""
    logging.basicConfig(level=logging.DEBUG if os.environ.get("VOLAR_DEBUG") else logging.INFO)

    api_key = os.environ.get("VOLAR_API_KEY")
    secret = os.environ.get("VOLAR_SECRET")
    site = os.environ.get("VOLAR_SITE")
    base_url = os.environ.get("VOLAR_BASE_URL", "vcloud.volarvideo.com")

    if not (api_key and secret and site):
        print("Set VOLAR_API_KEY, VOLAR_SECRET and VOLAR_SITE to run the examples.")
        return 1

    print("=== Volar Python Client Usage Examples ===\n")

    print("1. Computing a signature offline...")
    signature = build_signature(secret, "GET", "api/client/info", {"api_key": api_key})
    print(f"   Signature for GET api/client/info: {signature}\n")

    with VolarClient(api_key, secret, base_url, secure=True) as client:
        try:
            print("2. Listing sites...")
            data = client.sites()
            for entry in data.get("sites", []):
                print(f"   - {entry.get('slug')}: {entry.get('title')}")
            print()

            print("3. Listing upcoming broadcasts...")
            data = client.broadcasts({"site": site, "list": "upcoming", "per_page": 5})
            for broadcast in data.get("broadcasts", []):
                print(f"   - {broadcast.get('id')}: {broadcast.get('title')}")
            print()

            print("4. Creating a broadcast...")
            created = client.broadcast_create({"site": site, "title": "Example broadcast"})
            print(f"   Response: {json.dumps(created)}\n")

            broadcast = created.get("broadcast") or {}
            if created.get("success") and broadcast.get("id"):
                if len(sys.argv) > 1:
                    print("5. Uploading a poster...")
                    result = client.broadcast_poster({"site": site, "id": broadcast["id"]}, sys.argv[1])
                    print(f"   Response: {json.dumps(result)}\n")

                print("6. Deleting the broadcast...")
                deleted = client.broadcast_delete({"site": site, "id": broadcast["id"]})
                print(f"   Response: {json.dumps(deleted)}\n")
        except VolarError as e:
            print(f"   ✗ {type(e).__name__}: {e}")
            return 1

    print("=== Examples completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
