"""Schools Service: schools and their coaches."""
