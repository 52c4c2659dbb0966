#!/usr/bin/env python3
"""Post sample products to a running DutySnap API and print the comparisons."""

import os
import sys

import requests

API_BASE = os.environ.get("API_BASE", "http://localhost:8000")

SAMPLE_PRODUCTS = [
    {
        "name": "Leather Handbag",
        "product_name": "Leather handbag",
        "product_description": "Women's genuine leather handbag with gold hardware, made in Italy",
        "product_value": 250,
        "origin_country": "IT",
    },
    {
        "name": "Running Shoes",
        "product_name": "Athletic running shoes",
        "product_description": "Men's running shoes with rubber sole and textile upper",
        "product_value": 120,
        "origin_country": "VN",
    },
    {
        "name": "Wireless Headphones",
        "product_name": "Bluetooth wireless headphones",
        "product_description": "Over-ear noise cancelling wireless headphones with built-in microphone",
        "product_value": 300,
        "origin_country": "CN",
    },
    {
        "name": "Cotton T-Shirt",
        "product_name": "100% cotton t-shirt",
        "product_description": "Men's short-sleeve cotton t-shirt, solid color",
        "product_value": 25,
        "origin_country": "BD",
    },
    {
        "name": "Smartwatch",
        "product_name": "Smart fitness watch",
        "product_description": "Digital smartwatch with heart rate monitor, GPS, and touchscreen display",
        "product_value": 400,
        "origin_country": "CN",
    },
]


def run_comparison(sample):
    """Run one comparison and print classifications, duties and analysis."""
    print(f"\n{'=' * 60}")
    print(f"Testing: {sample['name']}")
    print("=" * 60)

    payload = {key: value for key, value in sample.items() if key != "name"}
    payload["ship_to_country"] = "FR"

    response = requests.post(f"{API_BASE}/api/v1/compare", json=payload, timeout=120)
    if response.status_code != 200:
        print(f"❌ API error: {response.status_code}")
        print(response.text)
        return None

    result = response.json()

    print("\n📊 Classifications:")
    for provider, classification in result["classifications"].items():
        if classification.get("error"):
            print(f"  {provider.upper()}: ❌ {classification['error']}")
        else:
            print(f"  {provider.upper()}: {classification['hs_code']} "
                  f"(HS6 {classification['hs_code6']}, "
                  f"confidence {classification['confidence'] * 100:.1f}%, "
                  f"{classification['latency_ms']:.0f}ms)")

    if result.get("duty_calculations"):
        print("\n💶 Duty calculations:")
        for provider, duty in result["duty_calculations"].items():
            if duty.get("error"):
                print(f"  {provider.upper()}: ❌ {duty['error']}")
            else:
                print(f"  {provider.upper()}: duties {duty['duties']['amount']:.2f} ({duty['duties']['rate']}), "
                      f"VAT {duty['vat']['amount']:.2f}, "
                      f"total {duty['total_landed_cost']:.2f} {duty['currency']}")

    analysis = result["analysis"]
    print("\n🔍 Analysis:")
    print(f"  Exact match: {analysis['exact_match']}")
    print(f"  HS6 match:   {analysis['family_match']}")
    print(f"  Winner:      {analysis.get('winner') or 'none'}")
    print(f"  Notes:       {analysis['notes']}")
    return result


def print_statistics():
    """Print aggregate statistics for every stored comparison."""
    response = requests.get(f"{API_BASE}/api/v1/compare/stats/summary", timeout=30)
    if response.status_code != 200:
        print(f"❌ Failed to load statistics: {response.status_code}")
        return

    stats = response.json()
    print(f"\n{'=' * 60}")
    print("📈 Summary")
    print("=" * 60)
    print(f"  Total comparisons: {stats['total']}")
    print(f"  Wins:              {stats['wins']} (ties: {stats['ties']})")
    print(f"  Avg confidence:    {stats['avg_confidence']}")
    print(f"  HS6 match rate vs {stats['reference_provider']}: {stats['hs6_match_rate']}")


if __name__ == "__main__":
    try:
        requests.get(f"{API_BASE}/health", timeout=5).raise_for_status()
    except requests.RequestException as e:
        print(f"❌ API not reachable at {API_BASE}: {e}")
        sys.exit(1)

    for sample in SAMPLE_PRODUCTS:
        run_comparison(sample)

    print_statistics()
