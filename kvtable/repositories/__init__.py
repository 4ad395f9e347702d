"""Collection descriptors and bindings.

This package defines the abstract :class:`~kvtable.repositories.collections.Binding`
interface and its concrete implementations, such as the SQLite adapter under
:mod:`kvtable.repositories.sqlite`.
"""
