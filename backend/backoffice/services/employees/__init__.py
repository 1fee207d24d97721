"""Employee records and their branch-scoped EMP codes."""
