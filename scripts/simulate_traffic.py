# scripts/simulate_traffic.py
import random
import sys
import time

import requests

BASE_URL = "http://localhost:8000"

STEP_POOL = [
    "User opens the dashboard",
    "AI drafts a weekly summary",
    "Summary is automatically sent to the team",
    "User can preview and approve the draft",
    "On error the user can retry",
    "AI explains why it picked these highlights",
    "User can undo the send within 30 seconds",
    "Loading spinner shows progress",
    "AI remembers the user's preferred tone",
]


def generate_flow(i):
    steps = random.sample(STEP_POOL, k=random.randint(2, 6))
    return {
        "goal": f"Simulated flow #{i}",
        "steps": [{"text": s} for s in steps],
    }


def run_simulation(n=40, clients=3):
    print(f"🚀 Starting traffic simulation ({n} requests, {clients} clients)...")

    for i in range(n):
        client_ip = f"10.0.0.{i % clients + 1}"
        use_ai = random.random() < 0.3

        try:
            res = requests.post(
                f"{BASE_URL}/analyze",
                params={"ai": str(use_ai).lower()},
                json=generate_flow(i),
                headers={"X-Forwarded-For": client_ip},
                timeout=30,
            )
        except requests.RequestException as e:
            print(f"Connection Error: {e}")
            break

        tag = "AI " if use_ai else "   "
        if res.status_code == 200:
            analysis = res.json()["analysis"]
            risk = analysis["summary"]["overallRisk"]
            enhanced = "✨" if analysis["aiEnhanced"] else ""
            print(f"[{i+1}/{n}] {client_ip} {tag}| {len(analysis['findings'])} findings | {risk} {enhanced}")
        elif res.status_code == 429:
            body = res.json()
            print(f"[{i+1}/{n}] {client_ip} {tag}| ⏳ {body['error']} (retry in {res.headers.get('Retry-After')}s)")
        else:
            print(f"[{i+1}/{n}] {client_ip} {tag}| Error: {res.status_code}")

        time.sleep(0.05)

    summary = requests.get(f"{BASE_URL}/analytics", timeout=10)
    if summary.ok:
        current = summary.json()["current"]
        print(
            f"\n📊 Today: {current['totalRequests']} requests, {current['aiRequests']} AI, "
            f"{current['uniqueClients']} clients, error rate {current['errorRate']}"
        )
    print("\n✨ Simulation Complete.")


if __name__ == "__main__":
    try:
        requests.get(f"{BASE_URL}/health", timeout=5)
    except requests.RequestException:
        print("❌ Server not running!")
        sys.exit(1)

    run_simulation()
