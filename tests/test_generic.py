from extractor.parsers import generic

URL = "https://shop.example.com/p/1"


def test_skips_logos_icons_and_small_images():
    html = """
    <img src="/static/logo.png">
    <img src="/static/cart-icon.svg">
    <img src="/img/thumb.jpg" width="50" height="50">
    <img src="/img/boot.jpg" width="800">
    """
    assert generic.parse(html, URL).image == "/img/boot.jpg"


def test_prefers_image_tagged_as_product():
    html = """
    <img src="/img/banner.jpg">
    <img data-src="/img/boot-large.jpg" src="data:image/gif;base64,R0lGOD" class="product-gallery__image">
    """
    assert generic.parse(html, URL).image == "/img/boot-large.jpg"


def test_first_symbol_price_in_visible_text():
    html = """
    <script>var shipping = "£4.99";</script>
    <p>Was <s>£1,499.00</s> now £1,299.00</p>
    """
    assert generic.parse(html, URL).price == "£1,499.00"


def test_currency_code_price():
    assert generic.parse("<p>Price: 49.99 EUR</p>", URL).price == "49.99 EUR"


def test_nothing_found():
    assert generic.parse("<p>Nothing to see</p>", URL) is None


def test_long_amounts_are_not_truncated():
    assert generic.parse("<p>Yours for $1234567 today</p>", URL).price == "$1234567"
    assert generic.parse("<p>Price: 1250000 EUR</p>", URL).price == "1250000 EUR"
