"""TrueName context-aware name resolution backend."""
