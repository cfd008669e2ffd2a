"""Cross-service building blocks: errors and ports."""
