"""Helpers for constructing the distribution engine."""

from __future__ import annotations

import logging

from app.config import AppConfig, get_app_config
from services.distribution.descriptor import DescriptorReader, read_descriptor
from services.distribution.engine import DistributionEngine, FileCopier


_LOGGER = logging.getLogger(__name__)


def build_distribution_engine(
    config: AppConfig | None = None,
    *,
    descriptor_reader: DescriptorReader | None = None,
    copier: FileCopier | None = None,
    logger: logging.Logger | None = None,
) -> DistributionEngine:
    """Construct a :class:`DistributionEngine` from application settings."""

    settings = (config or get_app_config()).distribution
    _LOGGER.debug(
        "Building distribution engine (extension=%s, plugins_dir=%s, workers=%s)",
        settings.plugin_extension,
        settings.plugins_dirname,
        settings.max_workers,
    )
    options = {}
    if copier is not None:
        options["copier"] = copier
    return DistributionEngine(
        descriptor_reader=descriptor_reader or read_descriptor,
        plugin_extension=settings.plugin_extension,
        plugins_dirname=settings.plugins_dirname,
        max_workers=settings.max_workers,
        logger=logger,
        **options,
    )


__all__ = ["build_distribution_engine"]
