"""
Core monitoring engine for CPNMON.

Contains the token and multiset model, markings, transitions, the CPN
firing engine, protocol events, the monitor runtime, and violation
diagnostics.
"""
