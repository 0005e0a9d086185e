"""
Append-only audit trail.

Every order transition, webhook outcome and settlement action lands here.
Payout approval is proven by the presence of an entry, never by a flag.
"""
