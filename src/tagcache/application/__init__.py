"""Application layer – the read-through cache engine."""
