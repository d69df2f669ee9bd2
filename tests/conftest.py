"""Shared fixtures for the spending flow tests."""
import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from spending_api import AmountRecord, Category


# ── Fake API ──────────────────────────────────────────────────────────────────

CATEGORY_RESULTS = {
    "object_class": [
        {"id": 10, "type": "object_class", "name": "Personnel", "amount": 300},
        {"id": 11, "type": "object_class", "name": "Ghost", "amount": 0},
        {"id": 12, "type": "object_class", "name": "Grants", "amount": 500},
    ],
    "budget_function": [
        {"id": 20, "type": "budget_function", "name": "Defense", "amount": 400},
        {"id": 21, "type": "budget_function", "name": "Health", "amount": 400},
    ],
    "agency": [
        {"id": 30, "type": "agency", "name": "DoD", "amount": 350},
        {"id": 31, "type": "agency", "name": "HHS", "amount": 300},
        {"id": 32, "type": "agency", "name": "VA", "amount": 150},
    ],
}

AGENCY_RESULTS = {
    (10, 20): [
        {"id": 30, "type": "agency", "name": "DoD", "amount": 200},
        {"id": 32, "type": "agency", "name": "VA", "amount": 0},
    ],
    (10, 21): [{"id": 31, "type": "agency", "name": "HHS", "amount": 100}],
    (12, 20): [{"id": 30, "type": "agency", "name": "DoD", "amount": 150}],
    (12, 21): [
        {"id": 31, "type": "agency", "name": "HHS", "amount": 200},
        {"id": 32, "type": "agency", "name": "VA", "amount": 150},
    ],
}


def fake_spending_api(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    filters = body["filters"]
    if "object_class" in filters:
        key = (filters["object_class"], filters["budget_function"])
        return httpx.Response(200, json={"results": AGENCY_RESULTS.get(key, [])})
    return httpx.Response(200, json={"results": CATEGORY_RESULTS[body["type"]]})


@pytest.fixture
def fake_transport():
    return httpx.MockTransport(fake_spending_api)


# ── Sample data ───────────────────────────────────────────────────────────────

@pytest.fixture
def id_categories():
    return {
        "object_class": [Category(10, "Personnel"), Category(12, "Grants")],
        "budget_function": [Category(20, "Defense"), Category(21, "Health")],
        "agency": [Category(30, "DoD"), Category(31, "HHS"), Category(32, "VA")],
    }


@pytest.fixture
def name_categories():
    return {
        "object_class": ["Personnel", "Grants"],
        "budget_function": ["Defense", "Health"],
        "agency": ["DoD", "HHS", "VA", "Other"],
    }


@pytest.fixture
def amounts():
    return [
        AmountRecord("Personnel", "Defense", "DoD", 200.0),
        AmountRecord("Personnel", "Health", "HHS", 100.0),
        AmountRecord("Grants", "Defense", "DoD", 150.0),
        AmountRecord("Grants", "Health", "HHS", 200.0),
        AmountRecord("Grants", "Health", "VA", 150.0),
    ]
