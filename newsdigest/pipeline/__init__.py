"""Command line entry points and the periodic refresh scheduler."""
