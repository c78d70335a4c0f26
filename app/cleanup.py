"""
CLI entrypoint for clearing expired password-reset tokens. Run from cron, e.g.:

  python -m app.cleanup

Or hourly: 0 * * * * cd /path/to/project && .venv/bin/python -m app.cleanup

Expired tokens are already rejected at redemption; this only tidies storage.
"""

import logging
import sys

from app.core.database import SessionLocal
from app.services.password_reset import purge_expired_reset_tokens
from app.services.user_store import UserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Clear reset token state whose expiry has passed."""
    db = SessionLocal()
    try:
        cleared = purge_expired_reset_tokens(UserStore(db))
        logger.info("Reset token cleanup completed: cleared=%s", cleared)
        return 0
    except Exception as e:
        logger.exception("Reset token cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
