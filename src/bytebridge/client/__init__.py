"""Client module - Store API, reconciliation engine and CLI."""
