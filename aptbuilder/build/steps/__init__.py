"""构建步骤"""

from .build_step import BuildStep
from .package_discovery_step import PackageDiscoveryStep
from .tree_building_step import TreeBuildingStep
from .package_index_step import PackageIndexStep
from .release_manifest_step import ReleaseManifestStep
from .signing_step import SigningStep

__all__ = [
    "BuildStep",
    "PackageDiscoveryStep",
    "TreeBuildingStep",
    "PackageIndexStep",
    "ReleaseManifestStep",
    "SigningStep",
]
