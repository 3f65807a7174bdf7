from dependency_injector import containers, providers

from scheduling.services.appointment_writer import AppointmentWriter
from scheduling.services.scheduling_service import SchedulingService


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    appointment_writer = providers.Factory(
        AppointmentWriter,
    )

    scheduling_service = providers.Factory(
        SchedulingService,
        appointment_writer=appointment_writer,
        default_timezone=config.SCHEDULING_DEFAULT_TIMEZONE,
        default_generation_weeks=config.SCHEDULING_DEFAULT_GENERATION_WEEKS,
        max_generation_weeks=config.SCHEDULING_MAX_GENERATION_WEEKS,
    )


container: AppContainer | None = None  # set during app startup
