"""Manual smoke run against a live server (uvicorn src.main:app --port 8000).

Tokens are minted locally with the shared JWT_SECRET. Participant balances and
the chain_head height must already be provided by the host ledger; advance
chain_head between the staking and resolution sections when prompted.
"""
import json
import urllib.error
import urllib.request

from config.settings import settings
from src.bm_gateway.auth.jwt_handler import create_access_token

BASE = "http://localhost:8000/api/v1"


def call(method, path, body=None, token=None, params=None):
    url = f"{BASE}{path}"
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        url, data=data, method=method, headers={"Content-Type": "application/json"}
    )
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())


def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)


def label(name):
    print(f"\n--- {name} ---")


def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


OWNER = create_access_token(settings.OWNER_ADDRESS)
ORACLE = create_access_token(settings.ORACLE_ADDRESS)
ALICE = create_access_token("alice")
BOB = create_access_token("bob")

# ── S1 Admin ───────────────────────────────────────────────────
section("S1 ADMIN")

label("S1-1: Get config")
out(call("GET", "/admin/config", token=ALICE))

label("S1-2: Set fee percentage as non-owner (expect 1001)")
out(call("PUT", "/admin/fee-percentage", {"fee_percentage": 5}, token=ALICE))

label("S1-3: Set fee percentage out of range (expect 9003)")
out(call("PUT", "/admin/fee-percentage", {"fee_percentage": 101}, token=OWNER))

# ── S2 Markets ─────────────────────────────────────────────────
section("S2 MARKETS")

head = int(input("Current chain_head block height: "))

label("S2-1: Create market [head, head+10)")
r = call("POST", "/markets",
         {"start_price": 50_000, "start_block": head, "end_block": head + 10}, token=OWNER)
out(r)
MID = r.get("data", {}).get("market_id")

label("S2-2: Create market with end_block <= start_block (expect 9003)")
out(call("POST", "/markets", {"start_price": 1, "start_block": 5, "end_block": 5}, token=OWNER))

label("S2-3: List OPEN markets")
out(call("GET", "/markets", token=ALICE, params={"phase": "OPEN", "limit": 5}))

# ── S3 Predictions ─────────────────────────────────────────────
section("S3 PREDICTIONS")

label("S3-1: alice stakes 5,000,000 UP")
out(call("POST", f"/markets/{MID}/predictions", {"direction": "UP", "stake": 5_000_000},
         token=ALICE))

label("S3-2: bob stakes 3,000,000 DOWN")
out(call("POST", f"/markets/{MID}/predictions", {"direction": "DOWN", "stake": 3_000_000},
         token=BOB))

label("S3-3: Stake below minimum (expect 4001)")
out(call("POST", f"/markets/{MID}/predictions", {"direction": "UP", "stake": 1}, token=BOB))

label("S3-4: Pool balance")
out(call("GET", "/pool/balance", token=ALICE))

# ── S4 Resolution and claims ───────────────────────────────────
section("S4 RESOLUTION AND CLAIMS")

input(f"Advance chain_head to >= {head + 10}, then press Enter")

label("S4-1: Resolve as owner (expect 1001)")
out(call("POST", f"/markets/{MID}/resolve", {"end_price": 60_000}, token=OWNER))

label("S4-2: Resolve at 60,000 as oracle")
out(call("POST", f"/markets/{MID}/resolve", {"end_price": 60_000}, token=ORACLE))

label("S4-3: alice claims")
out(call("POST", f"/markets/{MID}/claim", token=ALICE))

label("S4-4: alice claims again (expect 5001)")
out(call("POST", f"/markets/{MID}/claim", token=ALICE))

label("S4-5: bob claims losing side (expect 4001)")
out(call("POST", f"/markets/{MID}/claim", token=BOB))

label("S4-6: Invariant report")
out(call("GET", "/admin/invariants", token=OWNER))

print("\n\n=== SMOKE RUN COMPLETE ===\n")
