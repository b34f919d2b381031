"""Policy configuration — commission rates, withholding and roster."""

from amnesia.policy.resolver import CommissionPolicy, PolicyResolver

__all__ = ["CommissionPolicy", "PolicyResolver"]
