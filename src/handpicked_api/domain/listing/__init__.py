"""Pure list-serving logic: request shape, cache keys, cursors and navigation links."""
