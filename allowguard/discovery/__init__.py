"""
AllowGuard Discovery

Turns Approval history for one (owner, token) pair into the reconciled,
de-duplicated, magnitude-sorted allowance set.
"""

from allowguard.discovery.engine import AllowanceDiscovery, DiscoveryFailed, unique_spenders

__all__ = ["AllowanceDiscovery", "DiscoveryFailed", "unique_spenders"]
