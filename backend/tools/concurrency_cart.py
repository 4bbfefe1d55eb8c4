import os
import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import requests
import concurrent.futures
import argparse
import json
from uuid import uuid4

BASE = os.environ.get("LOVECAKES_BASE", "http://127.0.0.1:8000/api/v1/external")

def add_task(i, payload):
    try:
        r = requests.post(f"{BASE}/cart/item", json=payload, timeout=10)
        return (i, r.status_code, r.text)
    except requests.RequestException as e:
        return (i, "ERR", str(e))

def run_add_concurrent(workers, payload):
    print(f"Running cart add test: workers={workers}, session={payload['sessionId']}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(add_task, i, payload) for i in range(workers)]
        results = [f.result() for f in futures]
    for r in results:
        print(r)
    ok = [json.loads(r[2])["data"] for r in results if r[1] == 200]
    print("Unique cart item ids:", {d["idCartItem"] for d in ok})
    print("Quantities seen:", sorted(d["quantity"] for d in ok))

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fire concurrent identical add-to-cart requests.")
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--session", default=None)
    parser.add_argument("--product", type=int, default=1)
    parser.add_argument("--flavor", type=int, default=1)
    parser.add_argument("--size", type=int, default=1)
    parser.add_argument("--qty", type=int, default=1)
    args = parser.parse_args()

    payload = {
        "sessionId": args.session or f"load-{uuid4().hex[:8]}",
        "idProduct": args.product,
        "idFlavor": args.flavor,
        "idSize": args.size,
        "quantity": args.qty,
    }
    run_add_concurrent(args.workers, payload)
