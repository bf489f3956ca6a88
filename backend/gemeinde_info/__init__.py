"""
Gemeinde Info - resolve Swiss locations to their municipality and gather
opening hours, contact and registration details from the municipality website.
"""
