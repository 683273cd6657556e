import pytest

from slugs import slugify, unique_slug

NAMES = [
    "Wireless Bluetooth Headphones",
    "  Organic   Cotton -- T-Shirt!! ",
    "Café & Crème (Limited)",
    "tabs\tand\nnewlines",
    "already-a-slug",
    "---",
    "",
    "50% off: Summer/Winter",
    "non breaking spaces",
]


def test_slugify_headphones():
    assert slugify("Wireless Bluetooth Headphones") == "wireless-bluetooth-headphones"


def test_slugify_strips_punctuation_and_collapses_hyphens():
    assert slugify("Organic Cotton -- T-Shirt!!") == "organic-cotton-t-shirt"
    assert slugify("50% off: Summer/Winter") == "50-off-summerwinter"


@pytest.mark.parametrize("name", NAMES)
def test_slugify_properties(name):
    slug = slugify(name)
    assert slugify(slug) == slug
    assert not any(ch.isspace() for ch in slug)
    assert "--" not in slug


def test_unique_slug_appends_counter():
    assert unique_slug("shirt", set()) == "shirt"
    assert unique_slug("shirt", {"shirt"}) == "shirt-2"
    assert unique_slug("shirt", {"shirt", "shirt-2"}) == "shirt-3"


def test_slugify_trims_edge_hyphens():
    assert slugify("  Organic   Cotton -- T-Shirt!! ") == "organic-cotton-t-shirt"
    assert slugify("-- sale --") == "sale"


@pytest.mark.parametrize("name", ["日本語", "!!!", "???", "---", ""])
def test_slugify_without_ascii_word_characters_is_empty(name):
    assert slugify(name) == ""
