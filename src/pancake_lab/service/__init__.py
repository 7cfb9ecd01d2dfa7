"""Service layer: the order registry and the pancake orchestrator.

These are the only mutators of Order aggregates.  External callers (the
HTTP adapter, tests, scripts) go through them and never touch aggregate
internals directly.
"""
