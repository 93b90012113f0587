"""Infrastructure - HTTP request construction and job orchestration."""
