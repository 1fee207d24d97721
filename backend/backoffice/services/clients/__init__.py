"""Branch clients and their CUST codes."""
