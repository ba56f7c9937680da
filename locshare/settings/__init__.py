from locshare.settings._locshare_settings import LocShareSettings

__all__ = ["LocShareSettings"]
