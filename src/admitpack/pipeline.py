"""End-to-end build: bundle the policy, then package it into manifests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from admitpack.artifacts.writer import write_build_report
from admitpack.bundler import BundleResult, bundle
from admitpack.config import BuildConfig
from admitpack.packager import PackageResult, check_templates, package

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    bundle: BundleResult
    package: PackageResult


def write_report(config: BuildConfig, result: PackageResult, exports: list[str] | None = None) -> None:
    packager = config.packager
    if packager.report is None:
        return
    write_build_report(
        packager.report,
        root=config.root,
        bundle_path=packager.bundle,
        bundle_size=result.bundle_size,
        payload_size=result.payload_size,
        manifests=[result.policy_manifest, result.bundle_manifest],
        exports=exports,
    )
    logger.info("wrote build report %s", packager.report)


def build(config: BuildConfig) -> BuildResult:
    """Run the bundler and the packager in order.

    Templates are checked first and a bundler failure propagates before the
    packager runs, so a failing build leaves every output file untouched.
    """
    check_templates(config.packager)
    bundled = bundle(config.bundler)
    packaged = package(config.packager)
    write_report(config, packaged, list(bundled.exports))
    return BuildResult(bundle=bundled, package=packaged)
