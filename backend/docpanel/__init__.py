"""DocPanel Application Package — document-contextual agent streaming.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
