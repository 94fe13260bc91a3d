"""
Storefront API: catalog, cart, checkout and reviews
"""
__version__ = "1.0.0"
