"""Pydantic Schemas — request/response contracts for API endpoints.

Invariants:
    - Schemas shape payloads only; business validation stays in core/
"""
