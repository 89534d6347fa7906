import requests
import os

BASE_URL = os.environ.get("B93_URL", "http://127.0.0.1:8000")

HELLO = '"!dlroW ,olleH">:#,_@\n'


def run_full_test():
    print("=== STARTING FULL SYSTEM TEST ===\n")

    # --- Step 1: node is up ---
    print("[1] Checking node health...")
    try:
        data = requests.get(f"{BASE_URL}/health").json()
        if data.get("status") != "ok":
            print(f"❌ Node not healthy: {data}")
            return
        print(f"✅ Node up, step limit {data.get('max_steps')}\n")
    except requests.RequestException as e:
        print(f"❌ Connection failed: {e}")
        return

    # --- Step 2: hello world ---
    print("[2] Running hello world...")
    try:
        data = requests.post(f"{BASE_URL}/run", json={"source": HELLO}).json()
        if data.get("status") == "halted":
            print(f"✅ Output: {data['stdout']!r} in {data['steps']} steps\n")
        else:
            print(f"❌ Run failed: {data}\n")
    except requests.RequestException as e:
        print(f"❌ Error: {e}")

    # --- Step 3: numeric input ---
    print("[3] Echoing a number through '&'...")
    try:
        data = requests.post(f"{BASE_URL}/run", json={"source": "&.@", "stdin": "42\n"}).json()
        if data.get("stdout") == "42 ":
            print("✅ Numeric input round-tripped\n")
        else:
            print(f"❌ Unexpected result: {data}\n")
    except requests.RequestException as e:
        print(f"❌ Error: {e}")

    # --- Step 4: oversized playfield is rejected ---
    print("[4] Submitting a playfield that is too tall...")
    try:
        resp = requests.post(f"{BASE_URL}/run", json={"source": "@\n" * 26})
        if resp.status_code == 400:
            print(f"✅ Rejected: {resp.json().get('detail')}")
        else:
            print(f"⛔ Expected 400, got {resp.status_code}: {resp.text}")
    except requests.RequestException as e:
        print(f"❌ Error: {e}")


if __name__ == "__main__":
    run_full_test()
