"""
Domain normalization and passive domain signals.
"""
