"""Pydantic request/response contracts, one module per route group."""
