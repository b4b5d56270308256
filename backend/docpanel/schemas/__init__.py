"""Pydantic Schemas — request/response validation for the agent panel API.

Invariants:
    - Schemas validate at system boundary (caller input, API responses)
    - Domain enums from core/ used for enum fields
"""
