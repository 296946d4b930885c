"""Incremental script bundler."""

from .cache import BundleCache, CachedModule
from .engine import BundleEngine, BundleOutput
from .incremental import BundleResult, IncrementalBundler
from .resolve import ModuleResolver, find_dependencies
from .sourcemap import SourceMapBuilder, vlq_encode
from .transforms import (
    DownLevelTransform,
    JsonTransform,
    MinifyTransform,
    PartialTemplateTransform,
    Transform,
    TransformResult,
    default_transforms,
    esm_to_commonjs,
)

__all__ = [
    "BundleCache",
    "BundleEngine",
    "BundleOutput",
    "BundleResult",
    "CachedModule",
    "DownLevelTransform",
    "IncrementalBundler",
    "JsonTransform",
    "MinifyTransform",
    "ModuleResolver",
    "PartialTemplateTransform",
    "SourceMapBuilder",
    "Transform",
    "TransformResult",
    "default_transforms",
    "esm_to_commonjs",
    "find_dependencies",
    "vlq_encode",
]
