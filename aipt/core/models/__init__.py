"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from aipt.core.models import Action, Receipt, ProvisionProfile, HostState
"""

from aipt.core.models.action import Action, Policy, Receipt
from aipt.core.models.profile import (
    DesktopEntrySpec,
    MenuCategory,
    NodeRuntime,
    ProvisionProfile,
    SourceCheckout,
    WrapperSpec,
)
from aipt.core.models.state import CheckoutState, HostState, OperationRecord

__all__ = [
    # action.py
    "Action",
    "Policy",
    "Receipt",
    # profile.py
    "DesktopEntrySpec",
    "MenuCategory",
    "NodeRuntime",
    "ProvisionProfile",
    "SourceCheckout",
    "WrapperSpec",
    # state.py
    "CheckoutState",
    "HostState",
    "OperationRecord",
]
