"""
sentinelpath - per-path checking of "exactly one callback" invariants.

Enumerates the execution paths of a function body and reports paths that call
neither or more than one of two designated callbacks. Ships a Promise executor
rule for JavaScript and TypeScript sources.
"""

__version__ = "0.1.0"
