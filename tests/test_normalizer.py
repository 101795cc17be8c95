import pytest

from extractor.models import PartialMetadata
from extractor.normalizer import clean_price, format_amount, normalize, parse_amount, upgrade_image


@pytest.mark.parametrize(
    "raw, currency, expected",
    [
        ("16.99", "GBP", ("£16.99", "GBP")),
        ("20.00", "USD", ("$20", "USD")),
        ("£1,299.00", None, ("£1299", "GBP")),
        ("16,99 €", None, ("€16.99", "EUR")),
        ("1.299,50", "EUR", ("€1299.5", "EUR")),
        ("EUR 35", None, ("€35", "EUR")),
        ("12.50", "£", ("£12.5", "GBP")),
        ("30", "CHF", ("30", "CHF")),
        ("45", None, ("45", "")),
    ],
)
def test_clean_price(raw, currency, expected):
    assert clean_price(raw, currency) == expected


def test_unparsable_price_is_empty():
    assert clean_price("Call for price", "GBP") == ("", "")
    assert clean_price(None) == ("", "")


def test_parse_amount_grouping():
    assert parse_amount("1 299,00") == 1299.0
    assert parse_amount("2.499.000") == 2499000.0
    assert parse_amount("no digits") is None


def test_format_amount_drops_trailing_zero():
    assert format_amount(16.99) == "16.99"
    assert format_amount(20.0) == "20"


@pytest.mark.parametrize(
    "thumbnail",
    [
        "https://m.media-amazon.com/images/I/71abc._AC_SX466_.jpg",
        "https://m.media-amazon.com/images/I/71abc._AC_UF894,1000_QL80_.jpg",
        "https://m.media-amazon.com/images/I/71abc._SX38_SY50_CR,0,0,38,50_.jpg",
        "https://m.media-amazon.com/images/I/71abc._AC_SX300_SY300_QL70_ML2_.jpg",
        "https://m.media-amazon.com/images/I/71abc._AC_SY300_SX300_.jpg",
        "https://m.media-amazon.com/images/I/71abc._AC_SY300_SX300_QL70_FMwebp_.jpg",
        "https://m.media-amazon.com/images/I/71abc._AC_US40_.jpg",
    ],
)
def test_amazon_thumbnails_are_upgraded(thumbnail):
    upgraded = upgrade_image(thumbnail, "https://www.amazon.co.uk/dp/B000TEST")
    assert upgraded == "https://m.media-amazon.com/images/I/71abc._AC_SL1500_.jpg"


def test_other_images_are_left_alone():
    image = "https://cdn.example.com/img/boot._SX300_.jpg"
    assert upgrade_image(image, "https://shop.example.com/p/1") == image


def test_normalize_resolves_image_and_strips_www():
    merged = PartialMetadata(title="Tom &amp; Jerry Mug", image="/img/mug.jpg", price="8.5", currency="GBP")
    result = normalize(merged, "https://www.shop.example.com/p/1#top", timestamp=123)
    assert result.title == "Tom & Jerry Mug"
    assert result.image == "https://www.shop.example.com/img/mug.jpg"
    assert result.price == "£8.5"
    assert result.domain == "shop.example.com"
    assert result.url == "https://www.shop.example.com/p/1"
    assert result.timestamp == 123


def test_normalize_falls_back_to_domain_title():
    result = normalize(PartialMetadata(), "https://shop.example.com/widgets/42")
    assert result.title == "shop.example.com"
    assert result.image == ""
    assert result.price == ""
    assert result.domain == "shop.example.com"
    assert result.timestamp > 0


def test_normalize_drops_non_http_image():
    result = normalize(PartialMetadata(image="data:image/png;base64,AAAA"), "https://shop.example.com/")
    assert result.image == ""
