"""
lecert - Let's Encrypt certificate inventory and renewal tool.

Lists certificates managed by certbot on a Linux server, highlights
expired and expiring ones, and walks through an interactive renewal.
"""

__version__ = "1.0.0"
__author__ = "Server Management Team"
