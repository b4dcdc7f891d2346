# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON-LD synthesis per page type.

Each generator builds a schema.org object from what the extractors find in
the page, then the matching rule's custom structured data is layered on top
(custom keys win). The generated object is validated against the pydantic
shape for its ``@type``. After the custom merge only the final ``@type`` and
that shape's required top-level fields are checked, so custom nested values
(an ``AggregateOffer``, say) pass through as given. Anything else is
rejected with SchemaValidationError.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentgate.errors import SchemaValidationError
from agentgate.geo.classifier import PageType
from agentgate.geo.extract import (
    extract_faq_pairs,
    extract_meta_description,
    extract_og_image,
    extract_og_title,
    extract_ordered_list_steps,
    extract_prices,
    extract_published_time,
    extract_title,
)

if TYPE_CHECKING:
    from agentgate.config import PageRule

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
IN_STOCK = "https://schema.org/InStock"


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


class _SchemaNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Offer(_SchemaNode):
    type_: Literal["Offer"] = Field("Offer", alias="@type")
    price: str | int | float
    price_currency: str = Field(alias="priceCurrency")
    availability: str | None = None


class Answer(_SchemaNode):
    type_: Literal["Answer"] = Field("Answer", alias="@type")
    text: str


class Question(_SchemaNode):
    type_: Literal["Question"] = Field("Question", alias="@type")
    name: str
    accepted_answer: Answer = Field(alias="acceptedAnswer")


class HowToStep(_SchemaNode):
    type_: Literal["HowToStep"] = Field("HowToStep", alias="@type")
    position: int
    text: str


class _Thing(_SchemaNode):
    context: str = Field(SCHEMA_CONTEXT, alias="@context")
    url: str


class ProductSchema(_Thing):
    type_: Literal["Product"] = Field("Product", alias="@type")
    name: str
    description: str
    image: Any = None
    offers: Offer | list[Offer] | None = None


class ArticleSchema(_Thing):
    type_: Literal["Article"] = Field("Article", alias="@type")
    headline: str
    description: str
    image: Any = None
    date_published: str | None = Field(None, alias="datePublished")


class TechArticleSchema(_Thing):
    type_: Literal["TechArticle"] = Field("TechArticle", alias="@type")
    headline: str
    description: str


class FAQPageSchema(_Thing):
    type_: Literal["FAQPage"] = Field("FAQPage", alias="@type")
    name: str
    main_entity: list[Question] = Field(default_factory=list, alias="mainEntity")


class HowToSchema(_Thing):
    type_: Literal["HowTo"] = Field("HowTo", alias="@type")
    name: str
    description: str
    step: list[HowToStep] = Field(default_factory=list)


class WebPageSchema(_Thing):
    type_: Literal["WebPage"] = Field("WebPage", alias="@type")
    name: str
    description: str
    offers: list[Offer] | None = None


SCHEMA_MAP: dict[str, type[_Thing]] = {
    "Product": ProductSchema,
    "Article": ArticleSchema,
    "TechArticle": TechArticleSchema,
    "FAQPage": FAQPageSchema,
    "HowTo": HowToSchema,
    "WebPage": WebPageSchema,
}


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


class _PageFields:
    """Head fields shared by every generator, extracted once."""

    __slots__ = ("html", "url", "title", "description", "image")

    def __init__(self, html: str, url: str) -> None:
        self.html = html
        self.url = url
        self.title = extract_og_title(html) or extract_title(html) or ""
        self.description = extract_meta_description(html) or ""
        self.image = extract_og_image(html)


def _base(type_name: str, page: _PageFields, **fields: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"@context": SCHEMA_CONTEXT, "@type": type_name}
    data.update(fields)
    data["url"] = page.url
    return {k: v for k, v in data.items() if v is not None}


def _product(page: _PageFields) -> dict[str, Any]:
    prices = extract_prices(page.html)
    offers = None
    if prices:
        offers = {
            "@type": "Offer",
            "price": prices[0].value,
            "priceCurrency": prices[0].currency,
            "availability": IN_STOCK,
        }
    return _base("Product", page, name=page.title, description=page.description, image=page.image, offers=offers)


def _article(page: _PageFields) -> dict[str, Any]:
    return _base(
        "Article",
        page,
        headline=page.title,
        description=page.description,
        image=page.image,
        datePublished=extract_published_time(page.html),
    )


def _tech_article(page: _PageFields) -> dict[str, Any]:
    return _base("TechArticle", page, headline=page.title, description=page.description)


def _faq(page: _PageFields) -> dict[str, Any]:
    entities = [
        {"@type": "Question", "name": p.question, "acceptedAnswer": {"@type": "Answer", "text": p.answer}}
        for p in extract_faq_pairs(page.html)
    ]
    return _base("FAQPage", page, name=page.title, mainEntity=entities)


def _how_to(page: _PageFields) -> dict[str, Any]:
    steps = [
        {"@type": "HowToStep", "position": i, "text": text}
        for i, text in enumerate(extract_ordered_list_steps(page.html), start=1)
    ]
    return _base("HowTo", page, name=page.title, description=page.description, step=steps)


def _pricing(page: _PageFields) -> dict[str, Any]:
    offers = [{"@type": "Offer", "price": p.value, "priceCurrency": p.currency} for p in extract_prices(page.html)]
    return _base("WebPage", page, name=page.title, description=page.description, offers=offers or None)


def _web_page(page: _PageFields) -> dict[str, Any]:
    return _base("WebPage", page, name=page.title, description=page.description)


_GENERATORS: dict[PageType, Callable[[_PageFields], dict[str, Any]]] = {
    PageType.PRODUCT: _product,
    PageType.ARTICLE: _article,
    PageType.DOCS: _tech_article,
    PageType.FAQ: _faq,
    PageType.HOW_TO: _how_to,
    PageType.PRICING: _pricing,
    PageType.COMPARISON: _web_page,
    PageType.GENERIC: _web_page,
}

# Rules may force a schema type regardless of the detected page type.
_GENERATORS_BY_SCHEMA: dict[str, Callable[[_PageFields], dict[str, Any]]] = {
    "Product": _product,
    "Article": _article,
    "TechArticle": _tech_article,
    "FAQPage": _faq,
    "HowTo": _how_to,
    "WebPage": _web_page,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _model_for(data: Mapping[str, Any]) -> tuple[str, type[_Thing]]:
    type_name = data.get("@type")
    model = SCHEMA_MAP.get(type_name) if isinstance(type_name, str) else None
    if model is None:
        raise SchemaValidationError(f"Unsupported structured data type: {type_name!r}", schema_type=str(type_name))
    return type_name, model


def validate_schema(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate *data* against its ``@type`` shape and return the normalized dict."""
    type_name, model = _model_for(data)
    try:
        return model.model_validate(dict(data)).model_dump(by_alias=True, exclude_none=True)
    except ValidationError as e:
        raise SchemaValidationError(f"Invalid {type_name} structured data: {e}", schema_type=type_name) from e


def _check_top_level(data: Mapping[str, Any]) -> dict[str, Any]:
    """Supported ``@type`` and every required top-level field present; values unchecked."""
    type_name, model = _model_for(data)
    missing = [
        field.alias or name
        for name, field in model.model_fields.items()
        if field.is_required() and (field.alias or name) not in data
    ]
    if missing:
        raise SchemaValidationError(
            f"{type_name} structured data is missing {', '.join(missing)}", schema_type=type_name
        )
    return dict(data)


def synthesize_schema(
    page_type: PageType,
    html: str,
    url: str,
    rule: PageRule | None = None,
) -> dict[str, Any]:
    """Build and validate the structured-data object for a page.

    Raises:
        SchemaValidationError: the merged object fits no supported shape.
    """
    page = _PageFields(html, url)
    generator = _GENERATORS.get(page_type, _web_page)
    if rule is not None and rule.schema_types:
        generator = next(
            (_GENERATORS_BY_SCHEMA[t] for t in rule.schema_types if t in _GENERATORS_BY_SCHEMA),
            generator,
        )
    data = validate_schema(generator(page))
    if rule is not None and rule.custom_structured_data:
        return _check_top_level({**data, **rule.custom_structured_data})
    return data


def to_script_json(schema: Mapping[str, Any]) -> str:
    """Compact JSON safe to embed in a ``<script>`` element."""
    return json.dumps(schema, ensure_ascii=False, separators=(",", ":")).replace("</", "<\\/")
