"""gsb command line interface."""
