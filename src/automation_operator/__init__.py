"""Automation operator: resolves APB-backed service definitions into watched resource kinds."""

__version__ = "0.1.0"
