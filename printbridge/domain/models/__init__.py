"""
Domain models for the print order workflow.
"""

from .access_token import AccessToken
from .order import CheckoutResult, OrderRequest, PartnerOrder

__all__ = ["AccessToken", "CheckoutResult", "OrderRequest", "PartnerOrder"]
