"""Menu catalog fetched from the external catalog provider.

The provider is the source of truth for product names and prices. Reads are
cached for ``cache_secs``; when a refresh fails the last good snapshot is
served, and when there is none the static fallback menu keeps the floor
working.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..domain.records import Category, Product
from ..routes_metrics import catalog_fallbacks_total

logger = logging.getLogger("poscore.catalog")

CATEGORY_ICONS: Dict[str, str] = {
    "ensaladas": "Salad",
    "platos principales": "ChefHat",
    "principales": "ChefHat",
    "bebidas": "Coffee",
    "postres": "Cake",
    "aperitivos": "Utensils",
    "sopas": "Bowl",
    "carnes": "Beef",
    "pescados": "Fish",
    "vegetarianos": "Leaf",
    "mariscos": "Fish",
}

FALLBACK_CATEGORIES = [
    Category(id="1", name="Platos Principales", icon="ChefHat"),
    Category(id="2", name="Bebidas", icon="Coffee"),
    Category(id="3", name="Postres", icon="Cake"),
]

FALLBACK_PRODUCTS = [
    Product(1, "Paella Valenciana", Decimal("24.50"), "1", "Arroz bomba tradicional con pollo y verduras"),
    Product(2, "Solomillo de Ternera", Decimal("28.90"), "1", "Solomillo a la plancha con salsa de pimienta"),
    Product(3, "Lubina a la Sal", Decimal("26.80"), "1", "Pescado fresco del Mediterráneo"),
    Product(4, "Cerveza Estrella Galicia", Decimal("3.50"), "2", "Cerveza rubia, botella 330ml"),
    Product(5, "Vino Tinto Crianza", Decimal("5.80"), "2", "D.O. Rioja, copa 150ml"),
    Product(6, "Agua Mineral", Decimal("2.50"), "2", "Agua con gas, botella 500ml"),
    Product(7, "Tiramisú Casero", Decimal("6.50"), "3", "Postre italiano tradicional"),
    Product(8, "Crema Catalana", Decimal("5.80"), "3", "Postre tradicional catalán"),
]


def category_icon(name: str) -> str:
    return CATEGORY_ICONS.get(name.strip().lower(), "Utensils")


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


@dataclass
class CatalogSnapshot:
    categories: List[Category] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    # "provider", "stale" or "fallback"
    source: str = "provider"

    def product(self, product_id: int) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None


FALLBACK_MENU = CatalogSnapshot(FALLBACK_CATEGORIES, FALLBACK_PRODUCTS, "fallback")


def _spanish_item(item: Dict[str, Any]) -> Product:
    return Product(
        id=int(item["id"]),
        name=item["nombre"],
        price=Decimal(str(item["precio"])),
        category_id=slugify(item["categoria"]),
        description=item.get("descripcion") or "",
    )


def _spanish_categories(items: List[Dict[str, Any]]) -> List[Category]:
    seen: Dict[str, Category] = {}
    for item in items:
        name = item["categoria"]
        seen.setdefault(slugify(name), Category(slugify(name), name, category_icon(name)))
    return list(seen.values())


def parse_catalog(data: Any) -> CatalogSnapshot:
    """Normalise any of the payload shapes the provider is known to return.

    Accepted shapes are ``{"categories": [...], "products": [...]}``, a list
    of Spanish items (``nombre``/``precio``/``categoria``) or a single Spanish
    item. Anything else yields an empty snapshot.
    """

    if isinstance(data, dict) and "categories" in data and "products" in data:
        categories = [
            Category(
                id=str(c["id"]),
                name=c["name"],
                icon=c.get("icon") or category_icon(c["name"]),
            )
            for c in data["categories"]
        ]
        products = [
            Product(
                id=int(p["id"]),
                name=p["name"],
                price=Decimal(str(p["price"])),
                category_id=str(p.get("category_id", p.get("categoryId"))),
                description=p.get("description") or "",
            )
            for p in data["products"]
        ]
        return CatalogSnapshot(categories, products)
    if isinstance(data, list) and data and all(
        isinstance(i, dict) and {"nombre", "precio", "categoria"} <= i.keys() for i in data
    ):
        return CatalogSnapshot(_spanish_categories(data), [_spanish_item(i) for i in data])
    if isinstance(data, dict) and {"nombre", "precio", "categoria"} <= data.keys():
        return CatalogSnapshot(_spanish_categories([data]), [_spanish_item(data)])
    logger.warning("unexpected catalog payload shape: %s", type(data).__name__)
    return CatalogSnapshot()


class CatalogProvider:
    """Cached reader for the external menu catalog.

    Parameters
    ----------
    url:
        Catalog endpoint; ``None`` serves the static fallback menu.
    cache_secs:
        How long a successful fetch is reused.
    timeout:
        Request timeout in seconds.
    transport:
        Optional ``httpx`` transport, used by tests.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        cache_secs: int = 60,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.url = url
        self.cache_secs = cache_secs
        self.timeout = timeout
        self.transport = transport
        self._clock = clock
        self._cached: CatalogSnapshot | None = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    async def _fetch(self) -> CatalogSnapshot:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            resp = await client.get(self.url, headers={"Accept": "application/json"})
            resp.raise_for_status()
            return parse_catalog(resp.json())

    async def snapshot(self) -> CatalogSnapshot:
        if not self.url:
            return FALLBACK_MENU
        async with self._lock:
            now = self._clock()
            if self._cached and now - self._fetched_at < self.cache_secs:
                return self._cached
            try:
                fresh = await self._fetch()
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                logger.warning("catalog fetch failed: %s", exc)
                return self._degraded()
            if not fresh.categories or not fresh.products:
                logger.warning("catalog provider returned an empty menu")
                return self._degraded()
            self._cached = fresh
            self._fetched_at = now
            return fresh

    def _degraded(self) -> CatalogSnapshot:
        if self._cached:
            catalog_fallbacks_total.labels(source="stale").inc()
            return CatalogSnapshot(self._cached.categories, self._cached.products, "stale")
        catalog_fallbacks_total.labels(source="fallback").inc()
        return FALLBACK_MENU

    async def categories(self) -> List[Category]:
        return list((await self.snapshot()).categories)

    async def products(self, category_id: str | None = None) -> List[Product]:
        products = (await self.snapshot()).products
        if category_id is None:
            return list(products)
        return [p for p in products if p.category_id == str(category_id)]

    async def get_product(self, product_id: int) -> Optional[Product]:
        return (await self.snapshot()).product(product_id)


__all__ = [
    "CatalogProvider",
    "CatalogSnapshot",
    "FALLBACK_MENU",
    "category_icon",
    "parse_catalog",
    "slugify",
]
