"""
Order lifecycle.

Owns the order status graph and the only code path that changes an
order's status.
"""
