"""Invoices: per-branch daily INV codes and monthly invoice numbers."""
