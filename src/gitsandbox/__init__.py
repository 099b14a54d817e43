"""GitSandbox - in-memory Git simulation engine for tutorials and sandboxes."""

__version__ = "0.1.0"
