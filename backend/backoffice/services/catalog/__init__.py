"""Billable service catalog (SRV codes)."""
