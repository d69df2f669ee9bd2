#!/usr/bin/env python3
"""
USAspending API loaders.

Queries the spending aggregation endpoint for the three category lists and,
for every (object class, budget function) pair, the per-agency breakdown.
Each batch is fanned out in full before any response is awaited.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Sequence

import httpx
from tqdm import tqdm

# Handle both package and direct execution imports
try:
    from . import config
except ImportError:
    import config


class SpendingAPIError(Exception):
    """Base class for failures talking to the spending API."""


class NetworkError(SpendingAPIError):
    """The request could not be completed or returned a non-2xx status."""


class UnexpectedResponseError(SpendingAPIError):
    """The response body did not have the expected shape."""


@dataclass(frozen=True)
class Category:
    id: Any
    name: str


@dataclass(frozen=True)
class AmountRecord:
    object_class: str
    budget_function: str
    agency: str
    amount: float


CategoryTable = Dict[str, List[Category]]


class SpendingClient:
    """Thin async wrapper around the spending endpoint."""

    def __init__(
        self,
        endpoint: str = config.API_ENDPOINT,
        fiscal_year: str = config.FISCAL_YEAR,
        timeout: Optional[float] = config.HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.fiscal_year = fiscal_year
        self._client = httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=None),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "SpendingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def query(self, category_type: str, **filters: Any) -> List[Dict[str, Any]]:
        """POST one aggregation query and return its validated ``results`` list."""
        body = {"type": category_type, "filters": {"fy": self.fiscal_year, **filters}}
        try:
            response = await self._client.post(self.endpoint, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"{category_type} query failed ({type(e).__name__}): {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise UnexpectedResponseError(f"{category_type} query returned non-JSON body") from e
        return _validate_results(payload, category_type)


def _validate_results(payload: Any, category_type: str) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise UnexpectedResponseError(f"{category_type} response has no 'results' list")
    for result in payload["results"]:
        if not isinstance(result, dict):
            raise UnexpectedResponseError(f"{category_type} result is not an object: {result!r}")
        missing = [key for key in ("id", "name", "amount") if key not in result]
        if missing:
            raise UnexpectedResponseError(
                f"{category_type} result missing {', '.join(missing)}: {result!r}"
            )
        amount = result["amount"]
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise UnexpectedResponseError(f"{category_type} result amount is not a number: {result!r}")
    return payload["results"]


async def _gather(requests: List[Awaitable], desc: str, show_progress: bool = True) -> List[Any]:
    """
    Start every request at once and return results in request order.

    If one fails, the rest are cancelled and awaited before the error is
    re-raised, so no task outlives the batch.
    """
    tasks = [asyncio.ensure_future(request) for request in requests]
    with tqdm(total=len(tasks), desc=desc, disable=not show_progress) as bar:
        for task in tasks:
            task.add_done_callback(lambda _: bar.update())
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


async def load_categories(
    client: SpendingClient,
    category_types: Sequence[str] = config.CATEGORY_TYPES,
    show_progress: bool = True,
) -> CategoryTable:
    """
    Fetch every category type concurrently.

    Only categories with a non-zero amount are kept, in response order.
    """
    responses = await _gather(
        [client.query(category_type) for category_type in category_types],
        desc="Categories",
        show_progress=show_progress,
    )

    categories: CategoryTable = {}
    for category_type, results in zip(category_types, responses):
        categories[category_type] = [
            Category(result["id"], result["name"])
            for result in results
            if result["amount"] != 0
        ]
    return categories


async def load_amounts(
    client: SpendingClient,
    categories: CategoryTable,
    show_progress: bool = True,
) -> List[AmountRecord]:
    """
    Fetch the per-agency amount for every (object class, budget function) pair.

    Records carry display names only. Results with a zero amount are dropped.
    """
    pairs = [
        (object_class, budget_function)
        for object_class in categories["object_class"]
        for budget_function in categories["budget_function"]
    ]
    responses = await _gather(
        [
            client.query(
                "agency",
                object_class=object_class.id,
                budget_function=budget_function.id,
            )
            for object_class, budget_function in pairs
        ],
        desc="Amounts",
        show_progress=show_progress,
    )

    amounts: List[AmountRecord] = []
    for (object_class, budget_function), results in zip(pairs, responses):
        amounts.extend(_records_for_pair(object_class, budget_function, results))
    return amounts


def _records_for_pair(
    object_class: Category,
    budget_function: Category,
    results: Iterable[Dict[str, Any]],
) -> List[AmountRecord]:
    return [
        AmountRecord(
            object_class=object_class.name,
            budget_function=budget_function.name,
            agency=result["name"],
            amount=float(result["amount"]),
        )
        for result in results
        if result["amount"] != 0
    ]
