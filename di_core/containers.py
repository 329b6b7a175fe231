from dependency_injector import containers, providers

from events.services.completion_service import CompletionService
from events.services.occurrence_cache import OccurrenceCache
from events.services.occurrence_permission_service import OccurrencePermissionService
from events.services.occurrence_service import OccurrenceService
from events.services.occurrence_store import DjangoOccurrenceStore
from families.services import DjangoFamilyDirectory


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    occurrence_store = providers.Singleton(
        DjangoOccurrenceStore,
    )

    family_directory = providers.Singleton(
        DjangoFamilyDirectory,
    )

    occurrence_cache = providers.Singleton(
        OccurrenceCache,
        cache_alias=config.OCCURRENCE_CACHE_ALIAS,
        timeout=config.OCCURRENCE_CACHE_TIMEOUT,
    )

    occurrence_permission_service = providers.Factory(
        OccurrencePermissionService,
    )

    occurrence_service = providers.Factory(
        OccurrenceService,
        occurrence_store=occurrence_store,
        occurrence_cache=occurrence_cache,
        occurrence_permission_service=occurrence_permission_service,
    )

    completion_service = providers.Factory(
        CompletionService,
        occurrence_store=occurrence_store,
        family_directory=family_directory,
        occurrence_cache=occurrence_cache,
        occurrence_permission_service=occurrence_permission_service,
    )


container: AppContainer | None = None  # set during app startup
