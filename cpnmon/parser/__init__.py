"""
Text notation parser for CPNMON.

Provides lexical analysis and parsing of token literals (``Lock(42)``)
and event trace lines (``LockAcquire(tid=1, lock_id=7) @ main.rs:3:9``).
"""
