"""Bookstore Catalog - Core Application Package

This package contains the core application modules including:
- Book model (book.py)
- Catalog store implementations (store.py)
- Paginated search (queries.py)
- Validated writes (mutations.py)
- AI summary enrichment (services/)
- REST API (api.py) and CLI (cli.py)
"""

__version__ = "1.0.0"
