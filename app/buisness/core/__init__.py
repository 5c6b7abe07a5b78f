"""
Core business layer: accounts, signed links, mail and shared domain errors.
"""
