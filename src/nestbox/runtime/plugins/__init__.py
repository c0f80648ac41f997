"""Built-in container runtime providers."""
