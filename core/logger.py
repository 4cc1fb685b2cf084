"""
Configure the logger
"""

import logging
from core.config import get_settings

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# httpx logs every request at INFO, including the OpenAI calls
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("nebula")
