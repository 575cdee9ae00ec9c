"""Webhook inbound system.

Receives Event Grid batches of Entra ID audit events and turns user
add/delete operations into Copilot license allocate/release calls.
"""
