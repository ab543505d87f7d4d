"""
Persistence for the session record.

The verifier only needs ``update(mutator)``; ``UserConfigStore`` is the
default JSON file implementation used by command-line callers.
"""
