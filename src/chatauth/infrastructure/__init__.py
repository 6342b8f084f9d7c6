"""Infrastructure adapters: auth primitives, persistence, cache and email."""
