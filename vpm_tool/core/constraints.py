"""Package rules consulted before install and remove"""

import logging
from typing import List, Optional

from ..api.exceptions import ConstraintViolation
from ..models.config import ConstraintConfig
from ..models.manifest import Manifest

logger = logging.getLogger(__name__)


class ConstraintRules:
    """Mutual exclusion, base packages, protected packages and guarded removal

    All checks are pure: they only look at the manifest passed in and
    never touch the file system.
    """

    def __init__(self, config: Optional[ConstraintConfig] = None):
        self.config = config or ConstraintConfig()

    def exclusive_partners(self, package_id: str) -> List[str]:
        """Packages that may not be installed alongside ``package_id``"""
        partners = []
        for first, second in self.config.mutually_exclusive:
            if package_id == first:
                partners.append(second)
            elif package_id == second:
                partners.append(first)
        return partners

    def required_base(self, package_id: str) -> Optional[str]:
        """Package that must be installed before ``package_id``, if any"""
        base = self.config.base_packages.get(package_id)
        return base if base and base != package_id else None

    def is_protected(self, package_id: str) -> bool:
        return package_id in self.config.protected

    def check_install(self, package_id: str, manifest: Manifest) -> None:
        """Reject installing a package whose exclusive partner is installed

        Raises:
            ConstraintViolation: A partner is present in the manifest
        """
        present = [partner for partner in self.exclusive_partners(package_id) if manifest.contains(partner)]
        if present:
            raise ConstraintViolation(
                f"Cannot install {package_id} because {', '.join(present)} is already installed; "
                f"these packages cannot be installed together",
                package_id=package_id,
                blocking=present
            )

    def removal_blockers(self, package_id: str, manifest: Manifest) -> List[str]:
        """Installed packages that still depend on ``package_id``"""
        blockers = set(manifest.dependents_of(package_id))
        for dependent, base in self.config.base_packages.items():
            if base == package_id and dependent != package_id and manifest.contains(dependent):
                blockers.add(dependent)
        return sorted(blockers)

    def check_remove(self, package_id: str, manifest: Manifest) -> None:
        """Reject removing a protected or still-required package

        Raises:
            ConstraintViolation: Removal is not allowed; ``blocking`` lists the dependents
        """
        if self.is_protected(package_id):
            raise ConstraintViolation(f"{package_id} is protected and cannot be removed", package_id=package_id)

        blockers = self.removal_blockers(package_id, manifest)
        if blockers:
            raise ConstraintViolation(
                f"Cannot remove {package_id} while {', '.join(blockers)} depends on it",
                package_id=package_id,
                blocking=blockers
            )
