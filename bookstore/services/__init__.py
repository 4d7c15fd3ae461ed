"""Bookstore Catalog - Services Package

This package contains service modules for external integrations:
- Shared async HTTP client
- Gemini summary enricher
"""
