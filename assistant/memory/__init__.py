"""Long-term memory — rule-based extraction and retrieval."""
