"""
logging setup for the portfolio assistant
every module logs through logging.getLogger(__name__), this just points the
root logger at stdout with the service name in each line
"""

import logging
import os
import sys
from typing import Optional


def configure_logging(service_name: str, level: Optional[str] = None) -> None:
    """
    sets up the root logger for the app
    safe to call on every streamlit rerun, basicConfig only applies once
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logging.basicConfig(
        level=log_level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | "
            f"service={service_name} | %(message)s"
        ),
        stream=sys.stdout,
    )

    logging.getLogger(__name__).debug("logging configured for service=%s", service_name)
