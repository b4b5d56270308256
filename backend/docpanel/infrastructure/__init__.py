"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure depends on core/ types only, never on services/
    - All provider calls wrapped with timeout and error mapping
"""
