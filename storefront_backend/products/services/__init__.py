from .inventory import (
    AvailabilityResult,
    add_variant,
    adjust_stock,
    check_availability,
    remove_variant,
    reserve,
    restore,
    resync_after_variant_change,
    sync_aggregate_inventory,
    validate_availability,
)

__all__ = [
    "AvailabilityResult",
    "add_variant",
    "adjust_stock",
    "check_availability",
    "remove_variant",
    "reserve",
    "restore",
    "resync_after_variant_change",
    "sync_aggregate_inventory",
    "validate_availability",
]
