"""Task assignment backend with staged completion tracking."""
