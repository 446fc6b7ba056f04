"""ARQ worker for store background tasks.

Run with: arq services.store_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def startup(ctx: dict):
    from services.store_service.dependencies import build_components

    settings = get_settings()
    configure_logging(settings)
    settings.validate_for_startup()
    ctx["components"] = build_components(settings)


async def shutdown(ctx: dict):
    components = ctx.get("components")
    if components is not None:
        await components.dispose()


async def task_reconcile_stale_orders(ctx: dict):
    from services.store_service.tasks import reconcile_stale_pending_orders

    logger.info("Running: reconcile_stale_pending_orders")
    await reconcile_stale_pending_orders(ctx["components"])


class WorkerSettings:
    redis_settings = get_redis_settings()

    on_startup = startup
    on_shutdown = shutdown

    functions = [task_reconcile_stale_orders]

    cron_jobs = [
        cron(
            task_reconcile_stale_orders,
            minute={0, 10, 20, 30, 40, 50},
            run_at_startup=True,
        ),
    ]
