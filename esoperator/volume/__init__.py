"""
Local volume drivers.
"""
