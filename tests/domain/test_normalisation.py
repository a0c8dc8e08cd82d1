"""Tests for listing normalisation."""

import pytest

from buyer_radar.domain.listings import Listing
from buyer_radar.domain.normalisation import (
    RejectedRecord,
    city_slug,
    display_name_from_host,
    is_valid_host,
    normalise_host,
    normalise_key,
    normalise_listing,
    normalise_terms,
    normalise_tiers,
)
from buyer_radar.exceptions import InvalidKeyError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://www.Acme.com/shop?x=1", "acme.com"),
        ("HTTP://Sub.Example.co.uk./", "sub.example.co.uk"),
        ("user@acme.com:8080", "acme.com"),
        ("  acme.com  ", "acme.com"),
        ("//www.acme.com#top", "acme.com"),
        (None, ""),
        (42.5, "42.5"),
        (True, ""),
    ],
)
def test_normalise_host(raw: object, expected: str) -> None:
    assert normalise_host(raw) == expected


def test_is_valid_host_requires_domain_syntax() -> None:
    assert is_valid_host("acme.com")
    assert is_valid_host("shop.acme.co.uk")
    assert is_valid_host("xn--bcher-kva.xn--p1ai")
    assert not is_valid_host("localhost")
    assert not is_valid_host("-acme.com")
    assert not is_valid_host("not a host.com")
    assert not is_valid_host("")


def test_display_name_from_host() -> None:
    assert display_name_from_host("acme-foods.co.uk") == "Acme Foods"
    assert display_name_from_host("bobsbakery.com") == "Bobsbakery"


def test_terms_and_slugs() -> None:
    assert normalise_terms(["Pouch", " pouch ", "Coffee  Bags", ""]) == ("pouch", "coffee bags")
    assert city_slug("San  Antonio.") == "san-antonio"
    assert city_slug("new_york") == "new-york"
    assert normalise_tiers(["a", "Tier B", "x", "A", "tier-c"]) == ("A", "B", "C")


def test_normalise_key_accepts_opaque_ids_and_rejects_empty() -> None:
    assert normalise_key("Buyer1") == "buyer1"
    assert normalise_key("https://www.acme.com/") == "acme.com"
    with pytest.raises(InvalidKeyError):
        normalise_key("   ")
    with pytest.raises(InvalidKeyError):
        normalise_key(None)


def test_normalise_listing_reads_aliases_and_loose_fields() -> None:
    outcome = normalise_listing(
        {
            "website": "https://www.Acme.com/about",
            "tags": "Pouches; Coffee ,  Bags",
            "segments": ["coffee", "Retail"],
            "tier": "c",
            "city": "Austin",
            "size": "medium",
            "platform": "Shopify",
            "unknown": "ignored",
        }
    )

    assert isinstance(outcome, Listing)
    assert outcome.host == "acme.com"
    assert outcome.name == "Acme"
    assert outcome.tags == ("pouches", "coffee", "bags")
    assert outcome.segments == ("coffee", "retail")
    assert outcome.affinity_terms == ("pouches", "coffee", "bags", "retail")
    assert outcome.tiers == ("C",)
    assert outcome.city_tags == ("austin",)
    assert outcome.size == "mid"
    assert outcome.size_key == "mid"
    assert outcome.platform == "shopify"


def test_normalise_listing_prefers_host_over_other_aliases() -> None:
    outcome = normalise_listing({"host": "a.com", "domain": "b.com", "name": "Alpha"})

    assert isinstance(outcome, Listing)
    assert outcome.host == "a.com"
    assert outcome.name == "Alpha"


def test_size_key_falls_back_to_first_tier() -> None:
    assert Listing(host="a.com", name="A", tiers=("A", "C")).size_key == "large"
    assert Listing(host="b.com", name="B", tiers=("B",)).size_key == "mid"
    assert Listing(host="c.com", name="C").size_key == "unknown"
    assert Listing(host="d.com", name="D", tiers=("A",), size="micro").size_key == "micro"


@pytest.mark.parametrize(
    ("raw", "reason"),
    [
        (42, "not_an_object"),
        (["acme.com"], "not_an_object"),
        ({"name": "Nameless"}, "missing_host"),
        ({"host": "   "}, "missing_host"),
        ({"host": "localhost"}, "invalid_host"),
        ({"url": "https://bad host.com"}, "invalid_host"),
    ],
)
def test_normalise_listing_rejects_without_raising(raw: object, reason: str) -> None:
    outcome = normalise_listing(raw)

    assert isinstance(outcome, RejectedRecord)
    assert outcome.reason == reason
    assert outcome.raw is raw
