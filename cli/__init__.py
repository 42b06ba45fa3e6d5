"""iocbox command line interface."""
