#!/usr/bin/env python3
"""
Seed script: creates users via the API (no direct DB).
Existing users (409) are counted as skipped, so the script can be re-run.
Run: API must be running.
  python scripts/seed_users.py
  python scripts/seed_users.py --users 100 --base-url http://localhost:8000/api
"""

import argparse
import random
import sys

import httpx

API_BASE = "http://localhost:8000"

FIRST_NAMES = [
    "John", "Jane", "Alex", "Maria", "Wei", "Aisha", "Carlos", "Priya", "Olga", "Kenji",
    "Fatima", "Liam", "Noah", "Emma", "Sara", "Omar", "Yuki", "Ivan", "Zara", "Mateo",
]

LAST_NAMES = [
    "Doe", "Smith", "Garcia", "Chen", "Khan", "Silva", "Patel", "Ivanova", "Tanaka", "Muller",
    "Rossi", "Nguyen", "Kim", "Hassan", "Lopez", "Novak", "Berg", "Costa", "Sato", "Jensen",
]


def main():
    ap = argparse.ArgumentParser(description="Seed users via API")
    ap.add_argument("--users", type=int, default=30, help="Number of users to create")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL (without /users)")
    args = ap.parse_args()

    created = 0
    skipped = 0
    errors = []

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        print(f"Creating {args.users} users...")
        for i in range(args.users):
            first = random.choice(FIRST_NAMES)
            last = random.choice(LAST_NAMES)
            payload = {
                "username": f"{first.lower()}_{last.lower()}_{i + 1}",
                "email": f"user{i + 1}@example.com",
                "password": "password123",
                "firstName": first,
                "lastName": last,
            }
            try:
                r = client.post("/users", json=payload)
            except httpx.HTTPError as e:
                errors.append(f"{payload['username']}: {e}")
                continue
            if r.status_code == 201:
                created += 1
            elif r.status_code == 409:
                skipped += 1
            else:
                errors.append(f"{payload['username']}: {r.status_code} {r.text[:80]}")
            if (i + 1) % 10 == 0:
                print(f"  ... {i + 1} users")

        total = client.get("/users/count").json() if not errors else "?"

    print(f"\nDone. Created: {created}, already existed: {skipped}, total in service: {total}")
    if errors:
        print(f"Errors ({len(errors)}):")
        for e in errors[:15]:
            print("  ", e)
        if len(errors) > 15:
            print("  ... and", len(errors) - 15, "more")
        sys.exit(1)


if __name__ == "__main__":
    main()
