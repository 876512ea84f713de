import logging
import os
import sys
from pathlib import Path

from linkdrip.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules, base_dir: Path) -> None:
    """
    Validate operational requirements before startup.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    migrations_dir = base_dir / "migrations"
    if not migrations_dir.is_dir():
        logger.warning("Migrations directory not found at %s", migrations_dir)

    logger.info("Configuration validated")
