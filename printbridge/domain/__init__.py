"""
Domain layer for the print order bridge.

Plain dataclasses describing an order request, the partner order it
produces and the checkout result returned to the client.
"""
