"""
Product extractor for marketplace listings and storefront product pages.

Open Graph ``product:*`` tags are read first; a schema.org ``Product``
JSON-LD block fills whatever they leave out.
"""

from typing import Any, Dict, Optional

from ..detection import classify, extract_platform_id
from ..models import ContentMetadata, ContentType, ExtractorResult, Source
from ..patterns import MARKETPLACE_PATTERNS
from .base import BaseExtractor, ExtractorOptions, meta_content, to_int

BASE_CONFIDENCE = 0.5
FIELD_CONFIDENCE = 0.1

COMMERCE_TYPES = (ContentType.PRODUCT, ContentType.AMAZON, ContentType.ETSY)

SCHEMA_PREFIXES = ("https://schema.org/", "http://schema.org/")


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return None


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _strip_schema(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    for prefix in SCHEMA_PREFIXES:
        if value.startswith(prefix):
            return value[len(prefix):]
    return value


def is_product_type(item: Dict[str, Any]) -> bool:
    kind = item.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def product_confidence(metadata: ContentMetadata) -> float:
    """0.5 plus 0.1 for each of price, brand, availability, id and rating."""
    fields = ("price", "brand", "availability", "product_id", "rating")
    found = sum(1 for field in fields if getattr(metadata, field, None) is not None)
    return min(BASE_CONFIDENCE + FIELD_CONFIDENCE * found, 1.0)


class ProductExtractor(BaseExtractor):
    """Handles the commerce content types plus eBay and Shopify listings."""

    content_type = ContentType.PRODUCT
    name = "product"

    def can_handle(self, url: str) -> bool:
        if classify(url).type in COMMERCE_TYPES:
            return True
        lowered = url.strip().lower() if isinstance(url, str) else ""
        return any(pattern.search(lowered) for pattern in MARKETPLACE_PATTERNS)

    def handled_types(self):
        return COMMERCE_TYPES

    def strategies(self):
        return [self.try_scrape]

    def _schema_product(self, document: Any) -> Dict[str, Any]:
        for item in self.extract_json_ld(document):
            if is_product_type(item):
                return item
        return {}

    def extract_product_data(self, document: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "price": to_float(meta_content(document, property="product:price:amount")),
            "currency": meta_content(document, property="product:price:currency"),
            "original": to_float(meta_content(document, property="product:original_price:amount")),
            "availability": meta_content(document, property="product:availability"),
            "brand": meta_content(document, property="product:brand"),
            "product_id": (
                meta_content(document, property="product:retailer_item_id")
                or meta_content(document, property="product:product_id")
                or meta_content(document, property="product:retailer_part_no")
            ),
            "rating": to_float(meta_content(document, property="product:rating:value")),
            "review_count": to_int(meta_content(document, property="product:review_count")),
            "specifications": None,
        }

        schema = self._schema_product(document)
        if not schema:
            return data

        offers = _first(schema.get("offers"))
        if isinstance(offers, dict):
            if data["price"] is None:
                data["price"] = to_float(offers.get("price") or offers.get("lowPrice"))
            data["currency"] = data["currency"] or offers.get("priceCurrency")
            data["availability"] = data["availability"] or _strip_schema(offers.get("availability"))

        brand = _first(schema.get("brand"))
        if isinstance(brand, dict):
            brand = brand.get("name")
        if isinstance(brand, str):
            data["brand"] = data["brand"] or brand

        sku = schema.get("sku") or schema.get("productID")
        if not data["product_id"] and sku is not None:
            data["product_id"] = str(sku)

        aggregate = schema.get("aggregateRating")
        if isinstance(aggregate, dict):
            if data["rating"] is None:
                data["rating"] = to_float(aggregate.get("ratingValue"))
            if data["review_count"] is None:
                data["review_count"] = to_int(aggregate.get("reviewCount") or aggregate.get("ratingCount"))

        properties = schema.get("additionalProperty")
        if isinstance(properties, list):
            specifications = {
                str(prop["name"]): str(prop["value"])
                for prop in properties
                if isinstance(prop, dict) and prop.get("name") and prop.get("value") is not None
            }
            data["specifications"] = specifications or None

        return data

    async def try_scrape(self, options: ExtractorOptions):
        _, document = await self.load_page(options)
        url = options.url

        basic = self.extract_basic_metadata(document, url)
        product = self.extract_product_data(document)

        price = None
        if product["price"] is not None and product["currency"]:
            original = product["original"]
            discount = None
            if original and original > product["price"]:
                discount = round((original - product["price"]) / original * 100, 1)
            price = {
                "current": product["price"],
                "currency": product["currency"],
                "original": original,
                "discount": discount,
            }

        data = {
            **basic,
            "product_id": product["product_id"] or extract_platform_id(url, ContentType.AMAZON),
            "brand": product["brand"],
            "price": price,
            "availability": product["availability"],
            "rating": {
                "average": product["rating"],
                "count": product["review_count"],
            } if product["rating"] is not None else None,
            "specifications": product["specifications"],
        }

        metadata = self.clean_metadata(data)
        return ExtractorResult(metadata=metadata, confidence=product_confidence(metadata), source=Source.SCRAPING)
