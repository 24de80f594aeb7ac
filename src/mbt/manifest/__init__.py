from .application import Application, Applications
from .build import Manifest, SkippedDescriptor, build_manifest
from .descriptor import (
    DESCRIPTOR_FILENAME,
    BuildCommand,
    DescriptorSpec,
    parse_descriptor,
)
from .reduce import reduce_to_diff
from .resolve import (
    manifest_by_branch,
    manifest_by_diff,
    manifest_by_pr,
    manifest_by_sha,
)

__all__ = [
    "Application",
    "Applications",
    "BuildCommand",
    "DescriptorSpec",
    "DESCRIPTOR_FILENAME",
    "Manifest",
    "SkippedDescriptor",
    "build_manifest",
    "parse_descriptor",
    "reduce_to_diff",
    "manifest_by_branch",
    "manifest_by_diff",
    "manifest_by_pr",
    "manifest_by_sha",
]
