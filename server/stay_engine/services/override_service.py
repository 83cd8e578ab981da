"""Per-property override resolution over aggregated package descriptors."""

from collections.abc import Iterable

from ..schemas.package import OverrideSetting, PackageDescriptor, PackageOrigin


def _default_enabled(origin: PackageOrigin) -> bool:
    # Local packages are opt-out per property, external products opt-in
    return origin == PackageOrigin.LOCAL


def find_override(
    descriptor: PackageDescriptor,
    overrides: Iterable[OverrideSetting],
) -> OverrideSetting | None:
    """
    Find the override that applies to a descriptor.

    An override keyed by the descriptor id takes precedence over one keyed by
    its external product id.
    """
    by_external = None
    for override in overrides:
        if override.package_ref == descriptor.id:
            return override
        if (
            by_external is None
            and descriptor.external_product_id
            and override.package_ref == descriptor.external_product_id
        ):
            by_external = override
    return by_external


def apply_overrides(
    descriptors: Iterable[PackageDescriptor],
    overrides: Iterable[OverrideSetting],
) -> list[PackageDescriptor]:
    """
    Finalize display names and enabled flags for a property.

    Args:
        descriptors: Aggregated descriptors carrying their source-level enabled flag
        overrides: The property's override settings

    Returns:
        Descriptors in the same order with display_name and enabled resolved
    """
    overrides = list(overrides)
    resolved = []
    for descriptor in descriptors:
        override = find_override(descriptor, overrides)

        display_name = descriptor.original_name
        property_enabled = _default_enabled(descriptor.origin)
        if override is not None:
            if override.custom_name:
                display_name = override.custom_name
            if override.enabled is not None:
                property_enabled = override.enabled

        resolved.append(descriptor.model_copy(update={
            "display_name": display_name,
            "enabled": descriptor.enabled and property_enabled,
        }))
    return resolved
