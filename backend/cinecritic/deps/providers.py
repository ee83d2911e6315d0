"""
Provider dependency — builds the catalog sources for one request.

Adapters and their pacers are created per request, so pacing state never
leaks between requests. Tests swap this out via app.dependency_overrides.
"""
from cinecritic.core.config import settings
from cinecritic.services.catalog_reconciler import CatalogSources
from cinecritic.services.providers.base import ProviderConfig, RequestPacer
from cinecritic.services.providers.omdb import OmdbProvider
from cinecritic.services.providers.tmdb import TmdbProvider


def get_catalog_sources() -> CatalogSources:
    omdb = OmdbProvider(
        ProviderConfig(
            base_url=settings.OMDB_BASE_URL,
            api_key=settings.OMDB_API_KEY,
            timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        ),
        pacer=RequestPacer(settings.OMDB_REQUEST_INTERVAL_SECONDS),
    )
    tmdb = TmdbProvider(
        ProviderConfig(
            base_url=settings.TMDB_BASE_URL,
            api_key=settings.TMDB_API_KEY,
            timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        ),
        image_base_url=settings.TMDB_IMAGE_BASE_URL,
    )
    return CatalogSources(primary=omdb, secondary=tmdb)
