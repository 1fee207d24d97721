"""Back-office records for a multi-branch services company."""
