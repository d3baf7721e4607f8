"""Editor core: document model, tree store, navigation, editing services.

Nothing in this package performs UI or disk I/O.
"""
