import json
import threading

from extractor.models import PartialMetadata
from extractor.parsers import DEFAULT_CHAIN, load_document, merge_partials, run_chain, safe_parse

URL = "https://shop.example.com/p/1"


def test_merge_backfills_per_field_in_priority_order():
    merged = merge_partials(
        [
            PartialMetadata(title="From JSON-LD"),
            None,
            PartialMetadata(title="From meta", image="/img/meta.jpg"),
            PartialMetadata(image="/img/generic.jpg", price="£5"),
        ]
    )
    assert merged.title == "From JSON-LD"
    assert merged.image == "/img/meta.jpg"
    assert merged.price == "£5"
    assert merged.currency is None


def test_failing_strategy_is_no_contribution():
    def broken(html, final_url):
        raise ValueError("malformed markup")

    def title_only(html, final_url):
        return PartialMetadata(title="Still here")

    assert safe_parse(broken, "<p></p>", URL) is None
    merged = run_chain("<p></p>", URL, [broken, title_only])
    assert merged.title == "Still here"


def test_empty_partial_counts_as_no_contribution():
    assert safe_parse(lambda html, url: PartialMetadata(), "<p></p>", URL) is None


def test_default_chain_backfills_across_strategies():
    product = {"@type": "Product", "name": "Trail Runner", "offers": {"price": "16.99", "priceCurrency": "GBP"}}
    html = f"""
    <html><head>
      <script type="application/ld+json">{json.dumps(product)}</script>
      <meta property="og:title" content="Trail Runner | Shop">
      <meta property="og:image" content="/img/trail.jpg">
    </head><body><p>£20.00</p></body></html>
    """
    merged = run_chain(html, URL, DEFAULT_CHAIN)
    assert merged.title == "Trail Runner"
    assert merged.image == "/img/trail.jpg"
    assert merged.price == "16.99"
    assert merged.currency == "GBP"


def test_document_is_parsed_once_per_thread():
    html = "<html><body><h1>Garden Chair</h1></body></html>"
    soup = load_document(html)
    assert load_document(html) is soup

    other = []
    worker = threading.Thread(target=lambda: other.append(load_document(html)))
    worker.start()
    worker.join()
    assert other[0] is not soup


def test_run_chain_releases_parsed_document():
    html = "<html><body><h1>Garden Chair</h1></body></html>"
    seen = []

    def capture(html, final_url):
        seen.append(load_document(html))
        return PartialMetadata(title="Garden Chair")

    run_chain(html, URL, [capture, capture])

    assert seen[0] is seen[1]
    assert load_document(html) is not seen[0]
