"""Infrastructure Layer: database access and cross-cutting concerns.

Invariants:
    - Infrastructure never imports core/ domain logic (only core/errors.py)
    - Driver exceptions mapped to TimeboardError subclasses before leaving this layer
"""
