from __future__ import annotations


class CoverStampError(Exception):
    """Base class for errors surfaced to callers of the render pipeline."""


class ValidationError(CoverStampError, ValueError):
    pass


class TemplateError(CoverStampError, ValueError):
    """A catalog entry is malformed. Raised at load time only."""


class TemplateAssetError(CoverStampError, RuntimeError):
    """A template's bundled background asset could not be loaded."""


class BackgroundFetchError(CoverStampError, RuntimeError):
    """A caller-supplied background image could not be fetched or decoded."""
