"""Role binding exports."""

from patterncheck.binding.binder import (
    BindingSpace,
    RoleBinder,
    enumerate_bindings,
)
from patterncheck.binding.capability import (
    covers,
    public_method_shapes,
    shape_matches,
)

__all__ = [
    "BindingSpace",
    "RoleBinder",
    "enumerate_bindings",
    "covers",
    "public_method_shapes",
    "shape_matches",
]
