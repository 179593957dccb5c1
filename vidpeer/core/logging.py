"""
➡️ But : Configurer le logging du nœud (format unique, niveau depuis Settings.LOG_LEVEL).

Chaque module utilise son propre logger : logging.getLogger(__name__).
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    else:
        root.setLevel(level.upper())
    # httpx logue chaque requête en INFO, trop bavard pour les annonces aux pairs
    logging.getLogger("httpx").setLevel(logging.WARNING)
