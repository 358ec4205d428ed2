"""Build artifacts and their inspection."""

from lambda_pack.artifacts.inspector import (
    ArtifactInspector,
    InspectorOptions,
    estimate_zipped_size,
    iter_regular_files,
    measure_tree,
)
from lambda_pack.artifacts.models import BuildArtifact

__all__ = [
    "ArtifactInspector",
    "BuildArtifact",
    "InspectorOptions",
    "estimate_zipped_size",
    "iter_regular_files",
    "measure_tree",
]
