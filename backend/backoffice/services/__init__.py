"""Services module.

This module provides the service layer architecture:
- exceptions: Custom service exceptions
- identifiers: Sequential identifier scopes, allocation and insert retry
- branches, employees, clients, catalog, invoices: Creation flows and lookups
"""
