"""Canteen bounded context: walk-up food ordering against a merchant's live menu.

Handles order placement (stock decrement, queue numbers, totals), the order
status state machine, cancellation with stock restoration, and the merchant
statistics that follow order transitions.
"""

from protean.domain import Domain

canteen = Domain(name="canteen")
