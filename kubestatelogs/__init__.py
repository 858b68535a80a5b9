"""Structured JSON logging of Kubernetes resource state from cached object stores."""

__version__ = "0.1.0"