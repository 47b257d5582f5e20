"""Audited data-access layer for the content-management backend."""
