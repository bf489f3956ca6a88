"""
HTTP surface for Gemeinde Info.
"""
