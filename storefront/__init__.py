"""Gorkha Leaf storefront cart pipeline"""

__version__ = "1.0.0"
