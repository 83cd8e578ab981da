"""Package reference resolution across local, external and legacy identifiers."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..schemas.package import PackageDescriptor

logger = logging.getLogger(__name__)


MATCH_ID = "id"
MATCH_EXTERNAL_ID = "external_id"
MATCH_CASE_INSENSITIVE = "case_insensitive"
MATCH_LEGACY_NAME = "legacy_name"
MATCH_PRESERVED = "preserved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a package reference."""

    descriptor: PackageDescriptor
    matched_by: str

    @property
    def preserved(self) -> bool:
        return self.matched_by == MATCH_PRESERVED


def match_reference(ref: str, descriptors: Sequence[PackageDescriptor]) -> Resolution | None:
    """
    Find the descriptor a reference identifies.

    Rules are tried in strict priority order and the first rule with a hit
    wins; within a rule the first descriptor in list order wins.

    1. exact id
    2. exact external product id
    3. case-insensitive id or external product id
    4. exact original name (legacy records stored the package name)

    Args:
        ref: Raw reference string
        descriptors: Candidate descriptors for one property

    Returns:
        The resolution, or None when nothing matches
    """
    if not ref:
        return None

    for descriptor in descriptors:
        if descriptor.id == ref:
            return Resolution(descriptor, MATCH_ID)

    for descriptor in descriptors:
        if descriptor.external_product_id and descriptor.external_product_id == ref:
            return Resolution(descriptor, MATCH_EXTERNAL_ID)

    folded = ref.casefold()
    for descriptor in descriptors:
        if descriptor.id.casefold() == folded:
            return Resolution(descriptor, MATCH_CASE_INSENSITIVE)
        if descriptor.external_product_id and descriptor.external_product_id.casefold() == folded:
            return Resolution(descriptor, MATCH_CASE_INSENSITIVE)

    for descriptor in descriptors:
        if descriptor.original_name == ref:
            return Resolution(descriptor, MATCH_LEGACY_NAME)

    return None


def resolve_reference(
    ref: str,
    descriptors: Sequence[PackageDescriptor],
    previous: PackageDescriptor | None = None,
) -> Resolution | None:
    """
    Resolve a reference against the enabled descriptors of a property.

    When updating an existing estimate or booking, ``previous`` is the package
    it was last resolved to. A reference that no longer matches anything keeps
    that package instead of failing, so deleting or disabling a package never
    invalidates historical records.
    """
    candidates = [descriptor for descriptor in descriptors if descriptor.enabled]
    resolution = match_reference(ref, candidates)
    if resolution is not None:
        return resolution

    if previous is not None:
        logger.info(
            "Package reference unresolved, keeping previously resolved package",
            extra={"ref": ref, "package_id": previous.id}
        )
        return Resolution(previous, MATCH_PRESERVED)

    return None
