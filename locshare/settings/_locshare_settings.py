from pydantic_settings import BaseSettings, SettingsConfigDict

from locshare.constants import DEFAULT_FALLBACK_ACCURACY
from locshare.logging import LOCSHARE_LOGGER


class LocShareSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LOCSHARE_",
        env_nested_delimiter="__",
    )

    # Coarsest accuracy, applied when no monitor is registered
    fallback_accuracy: float = DEFAULT_FALLBACK_ACCURACY

    log_level: str = "INFO"

    # gpsd device settings
    gpsd_command: str = "gpspipe"
    gpsd_poll_interval_seconds: float = 10.0
    gpsd_message_count: int = 10

    # Name of the worker thread backing the default (main) executor
    main_executor_thread_name: str = "locshare-main"

    def model_post_init(self, __context) -> None:
        if self.gpsd_poll_interval_seconds <= 0:
            LOCSHARE_LOGGER.warning(
                f"{self.__class__.__name__} gpsd_poll_interval_seconds must be positive, using 10s"
            )
            self.gpsd_poll_interval_seconds = 10.0
        if self.gpsd_message_count < 1:
            LOCSHARE_LOGGER.warning(f"{self.__class__.__name__} gpsd_message_count must be at least 1, using 10")
            self.gpsd_message_count = 10
