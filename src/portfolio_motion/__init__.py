"""
portfolio_motion

Staggered-entrance animation engine and async form submission state
machine for a static portfolio page.
"""

__version__ = "0.1.0"
