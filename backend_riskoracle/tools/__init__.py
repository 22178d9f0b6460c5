"""Command-line tools: seed, classify, push, query and the daily sync scheduler."""
