"""Modern Chyrp backend: cached post, comment and interaction services."""
