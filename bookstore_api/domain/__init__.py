"""Domain Layer: value objects, constants and abstract contracts.

Nothing in here performs I/O.
"""
