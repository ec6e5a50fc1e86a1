"""Command line interface for PaddleNet."""
