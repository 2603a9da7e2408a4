"""Command line interface for paramgraph."""
