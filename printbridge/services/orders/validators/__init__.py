"""
Validator services for the client order request.
"""

from .order_validator import OrderRequestValidator

__all__ = ["OrderRequestValidator"]
