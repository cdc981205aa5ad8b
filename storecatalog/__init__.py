"""Store catalog.

Catalog consistency and query-composition engine: products with their
variants and category links, promotions, variant-based filtering and
pagination over a pluggable storage gateway.
"""

__version__ = "0.1.0"
