"""Declared category buckets and products of the help center."""

import re
from dataclasses import dataclass
from functools import lru_cache
from enum import StrEnum

from supportbot.core.exceptions import UnknownSelectionError


class Category(StrEnum):
    """Fixed category buckets, in declaration (tie-break) order."""

    GETTING_STARTED = "getting_started"
    EARTHROVER_SCHOOL = "earthrover_school"
    EARTHROVER = "earthrover"
    UFB = "ufb"
    SAM = "sam"
    ROBOTSFUN = "robotsfun"
    ET_FUGI = "et_fugi"
    TROUBLESHOOTING = "troubleshooting"
    FAQ = "faq"


class Product(StrEnum):
    """Products a channel or session can be scoped to."""

    EARTHROVER = "earthrover"
    EARTHROVER_SCHOOL = "earthrover_school"
    UFB = "ufb"
    SAM = "sam"
    ROBOTSFUN = "robotsfun"
    ET_FUGI = "et_fugi"

    @property
    def display_name(self) -> str:
        return PRODUCT_DISPLAY_NAMES[self]

    @property
    def aliases(self) -> tuple[str, ...]:
        return PRODUCT_ALIASES[self]


@dataclass(frozen=True)
class CategorySpec:
    """Where a category's articles come from and which query words point to it."""

    category: Category
    source_path: str
    keywords: tuple[str, ...]
    description: str


PRODUCT_DISPLAY_NAMES: dict[Product, str] = {
    Product.EARTHROVER: "Earthrover",
    Product.EARTHROVER_SCHOOL: "Earthrover School",
    Product.UFB: "UFB",
    Product.SAM: "SAM",
    Product.ROBOTSFUN: "Robots.Fun",
    Product.ET_FUGI: "ET Fugi",
}

PRODUCT_ALIASES: dict[Product, tuple[str, ...]] = {
    Product.EARTHROVER: ("earthrover", "earth rover"),
    Product.EARTHROVER_SCHOOL: ("earthrover school", "earth rover school"),
    Product.UFB: ("ufb", "ultimate fighting bots"),
    Product.SAM: ("sam",),
    Product.ROBOTSFUN: ("robots.fun", "robotsfun", "robots fun"),
    Product.ET_FUGI: ("et fugi", "et_fugi"),
}

# Source paths are relative to the configured help-center base URL.
# Troubleshooting articles live in the getting-started collection; faq is the home page.
CATALOG: dict[Category, CategorySpec] = {
    spec.category: spec
    for spec in (
        CategorySpec(
            Category.GETTING_STARTED,
            "collections/3762588-getting-started",
            ("start", "begin", "first steps", "setup"),
            "Getting started guides and onboarding tutorials",
        ),
        CategorySpec(
            Category.EARTHROVER_SCHOOL,
            "collections/3762589-earthrovers-school",
            ("earthrover", "school", "education", "learning", "students"),
            "EarthRovers School content, educational resources and tutorials",
        ),
        CategorySpec(
            Category.EARTHROVER,
            "collections/9174353-earthrovers-personal-bots",
            ("earthrover", "personal", "bot", "robot", "device", "hardware"),
            "Personal EarthRovers features, usage and configuration",
        ),
        CategorySpec(
            Category.UFB,
            "collections/12076791-ufb-ultimate-fighting-bots",
            ("ufb", "fighting", "competition", "bots", "ultimate"),
            "Ultimate Fighting Bots competition, rules and guides",
        ),
        CategorySpec(
            Category.SAM,
            "collections/13197832-sam-small-autonomous-mofo",
            ("sam", "autonomous", "ai", "robot"),
            "SAM product information and support",
        ),
        CategorySpec(
            Category.ROBOTSFUN,
            "collections/13197811-robots-fun",
            ("robots.fun", "robots", "fun", "platform"),
            "Robots.fun platform usage and account management",
        ),
        CategorySpec(
            Category.ET_FUGI,
            "articles/11561671-et-fugi-ai-competition",
            ("et fugi", "ai competition", "competition", "ai"),
            "ET Fugi AI competition information",
        ),
        CategorySpec(
            Category.TROUBLESHOOTING,
            "collections/3762588-getting-started",
            (
                "troubleshoot",
                "problem",
                "issue",
                "error",
                "fix",
                "help",
                "password",
                "reset",
                "login",
            ),
            "Troubleshooting and problem-solving guides",
        ),
        CategorySpec(
            Category.FAQ,
            "",
            ("faq", "frequently asked", "question", "common"),
            "Frequently asked questions and common queries",
        ),
    )
}

FALLBACK_CATEGORIES: tuple[Category, ...] = (
    Category.GETTING_STARTED,
    Category.FAQ,
    Category.TROUBLESHOOTING,
)


def parse_category(key: str) -> Category:
    """Resolve a category key, rejecting anything not declared."""
    try:
        return Category(key.strip().lower())
    except ValueError as e:
        raise UnknownSelectionError(f"Unknown category: {key}", key=key) from e


def parse_product(key: str) -> Product:
    """Resolve a product key, rejecting anything not declared."""
    try:
        return Product(key.strip().lower())
    except ValueError as e:
        raise UnknownSelectionError(f"Unknown product: {key}", key=key) from e


# Short keywords ("ai", "sam", "fun") only count as whole words, so they do
# not fire inside "email" or "same"; longer ones match at the start of a word.
SHORT_KEYWORD_LENGTH = 4


@lru_cache(maxsize=512)
def _keyword_pattern(phrase: str) -> re.Pattern[str]:
    escaped = re.escape(phrase)
    if len(phrase) < SHORT_KEYWORD_LENGTH:
        return re.compile(rf"\b{escaped}s?\b")
    return re.compile(rf"\b{escaped}")


def mentions(text: str, phrase: str) -> bool:
    """Whether an already lowercased text mentions a keyword or alias."""
    return _keyword_pattern(phrase).search(text) is not None


def mentioned_products(query: str) -> list[Product]:
    """Products whose aliases appear in an already lowercased query."""
    return [product for product in Product if any(mentions(query, alias) for alias in product.aliases)]
