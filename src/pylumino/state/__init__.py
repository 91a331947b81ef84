"""State/store layer.

Notifier, entity and collection stores, and the immutable snapshots they
publish. The :class:`pylumino.manager.StateManager` is the only owner of
named store instances.
"""
