"""Core domain modules.

This package contains the price-retrieval building blocks:

- market_data: timeout-bounded fetching, provider adapters, normalization, fallback chain
- refresh: background refresh scheduler and the price state cell
- formatters: display strings for currency, percentages and supply
- view_model: screen-level display decisions derived from the state cell
- health: provider and scheduler health checks
- config: environment-driven settings
"""
