"""
Domain models — Pydantic types for craft.

All models are re-exported here for convenient access:

    from craft.core.models import Action, Receipt, Directive, TemplateSpec
"""

from craft.core.models.action import Action, Receipt
from craft.core.models.spec import Directive, TemplateSpec, default_spec

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # spec.py
    "Directive",
    "TemplateSpec",
    "default_spec",
]
