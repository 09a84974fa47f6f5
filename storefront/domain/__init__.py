"""Domain layer: entities, errors, cancellation and service capability sets.

Nothing in this package imports SQLAlchemy or any other infrastructure code.
"""
