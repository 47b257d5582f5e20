"""
Per-domain repository modules for reads and log maintenance.

Mutations of audited entities never go through here; they are built as
commands and run by ``cmsdb.audited``.
"""
