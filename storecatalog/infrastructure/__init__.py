"""Infrastructure layer - configuration, logging, messages and SQL storage."""
