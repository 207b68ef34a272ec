"""
Book record package.

This package contains:
- Book record schema and field validation
- Error taxonomy shared by the service and HTTP layers
- MongoDB connection management
"""

__version__ = "1.0.0"
