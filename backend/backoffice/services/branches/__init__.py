"""Branch management: creation under BR-### codes, lookup, deactivation."""
