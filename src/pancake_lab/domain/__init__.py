"""Domain layer: the order aggregate and its optimistic update primitive.

An Order owns its Pancakes, a Pancake owns its Ingredients.  Every mutable
field sits behind an atomic snapshot reference; snapshots themselves are
immutable tuples or enum members and are never modified in place.
"""
