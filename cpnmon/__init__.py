"""
CPNMON: Colored Petri Net protocol MONitor.

Online runtime monitoring of concurrency events (lock acquire/release,
atomic load/store, thread spawn/join, block/wake) against a protocol
expressed as a Colored Petri Net.
"""

__version__ = "0.1.0"
