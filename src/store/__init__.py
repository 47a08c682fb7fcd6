"""Versioned key-value storage layer.

This package maps tagged record versions onto a coordination store and
provides advisory locking around writes.
"""
