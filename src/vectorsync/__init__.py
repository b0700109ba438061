"""
vectorsync - turns relational row changes into embedding jobs.

Scanners read the system of record incrementally and enqueue upsert/delete
jobs; workers claim them under a lease, hand them to an embedding executor,
and ack or fail them.  All coordination lives in the shared store.
"""

__version__ = "0.1.0"
