"""Kernel – errors and resource model shared by every layer."""
