import logging
import datetime
from db_mongo import get_col
from settings import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("arsenal")

def write_audit(action, player, detail, before=None, after=None):
    if not settings.audit_enabled:
        return
    get_col("audit_logs").insert_one({
        "ts": datetime.datetime.utcnow().isoformat() + "Z",
        "player": player, "action": action, "detail": detail,
        "before": before, "after": after
    })
