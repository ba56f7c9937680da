from locshare.logging._locshare_logger import LOCSHARE_LOGGER, ColoredFormatter

__all__ = ["LOCSHARE_LOGGER", "ColoredFormatter"]
