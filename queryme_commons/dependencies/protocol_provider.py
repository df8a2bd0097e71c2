import logging
import os
from typing import Optional

from dotenv import load_dotenv

from queryme_commons.constants.app_constants import AppConstants
from queryme_commons.constants.env_constants import EnvConstants
from queryme_commons.model.protocol_settings_model import ProtocolSettings

load_dotenv()
logger = logging.getLogger(__name__)

__protocol_settings: Optional[ProtocolSettings] = None


def get_protocol_settings() -> ProtocolSettings:
    """Dependency provider for ProtocolSettings (singleton)"""
    global __protocol_settings

    if __protocol_settings is None:
        __protocol_settings = ProtocolSettings(
            filter_query_name=os.getenv(EnvConstants.FILTER_QUERY_NAME, AppConstants.FILTER_QUERY_NAME),
            sort_query_name=os.getenv(EnvConstants.SORT_QUERY_NAME, AppConstants.SORT_QUERY_NAME),
            limit_query_name=os.getenv(EnvConstants.LIMIT_QUERY_NAME, AppConstants.LIMIT_QUERY_NAME),
        )
        logger.info(f"Initialized ProtocolSettings: {__protocol_settings}")

    return __protocol_settings


def reset_protocol_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment"""
    global __protocol_settings
    __protocol_settings = None
