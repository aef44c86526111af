"""
Order services package for forwarding book orders to the print partner.

This package contains the payload strategies, the partner response parser
and the orchestrator that drives the order workflow.
"""
