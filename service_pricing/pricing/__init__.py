"""Pricing — quote calculation and margin estimation over a catalog."""
