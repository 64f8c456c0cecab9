"""Command line entry point for kubelive."""
