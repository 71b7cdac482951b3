"""
Supporting utilities for CPNMON: net definition and trace readers,
structured logging, and visualization.
"""
