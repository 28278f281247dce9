# =======================================================================================
# gate_auth/__init__.py - Package Initialization
# =======================================================================================
"""
Gate Auth - dual-token authentication service

Phone-based users get short-lived access tokens plus long-lived refresh tokens;
username-based admins get a single non-expiring token. Every principal carries a
token_version counter, and bumping it invalidates all outstanding tokens at once.
"""

__version__ = "1.0.0"
__author__ = "Gate Auth Team"
