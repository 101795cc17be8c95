"""HTTP surface for the product card extractor."""
