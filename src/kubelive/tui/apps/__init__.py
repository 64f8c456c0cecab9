"""TUI applications package.

Available applications:
- kubernetes: live resource tables for a Kubernetes cluster
"""
