import json

from extractor.parsers import jsonld

URL = "https://shop.example.com/p/1"


def ld(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def test_product_with_offer():
    html = ld(
        {
            "@context": "https://schema.org",
            "@type": "Product",
            "name": "Trail Runner",
            "image": ["/img/trail-1.jpg", "/img/trail-2.jpg"],
            "offers": {"@type": "Offer", "price": "16.99", "priceCurrency": "GBP"},
        }
    )
    result = jsonld.parse(html, URL)
    assert result.title == "Trail Runner"
    assert result.image == "/img/trail-1.jpg"
    assert result.price == "16.99"
    assert result.currency == "GBP"


def test_product_inside_graph_with_image_object():
    html = ld(
        {
            "@graph": [
                {"@type": "BreadcrumbList", "name": "Shoes"},
                {
                    "@type": ["Product", "Thing"],
                    "name": "Canvas Tote",
                    "image": {"@type": "ImageObject", "url": "https://cdn.example.com/tote.jpg"},
                    "offers": [{"@type": "AggregateOffer", "lowPrice": 12, "priceCurrency": "EUR"}],
                },
            ]
        }
    )
    result = jsonld.parse(html, URL)
    assert result.title == "Canvas Tote"
    assert result.image == "https://cdn.example.com/tote.jpg"
    assert result.price == "12"
    assert result.currency == "EUR"


def test_malformed_block_is_skipped():
    html = (
        '<script type="application/ld+json">{"@type": "Product", "name": </script>'
        + ld({"@type": "Product", "name": "Wool Scarf"})
    )
    assert jsonld.parse(html, URL).title == "Wool Scarf"


def test_offer_node_backfills_missing_price():
    html = ld({"@type": "Product", "name": "Desk Lamp"}) + ld(
        {"@type": "Offer", "price": 45, "priceCurrency": "USD"}
    )
    result = jsonld.parse(html, URL)
    assert result.title == "Desk Lamp"
    assert result.price == "45"
    assert result.currency == "USD"


def test_price_specification():
    html = ld(
        {
            "@type": "Product",
            "name": "Kettle",
            "offers": {"priceSpecification": {"price": "29.50", "priceCurrency": "GBP"}},
        }
    )
    result = jsonld.parse(html, URL)
    assert result.price == "29.50"
    assert result.currency == "GBP"


def test_no_structured_data():
    assert jsonld.parse("<html><body><p>Hello</p></body></html>", URL) is None
    assert jsonld.parse(ld({"@type": "Organization", "name": "Shop"}), URL) is None
