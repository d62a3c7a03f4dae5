from portfolio_tracker.core.celery_app import celery
from portfolio_tracker.core.db import SessionLocal
from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import clear_price_caches
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.services.portfolio_service import PortfolioService


def refresh_held_assets(
        session_factory=SessionLocal,
        update_history: bool = True,
        market_data_factory=MarketDataService,
) -> dict:
    """
    Refresh prices and today's history for every held asset.

    :param market_data_factory: builds the quote service from a RepositoryFactory
    """
    db = session_factory()
    try:
        factory = RepositoryFactory(db)
        service = PortfolioService(factory, market_data=market_data_factory(factory))
        results = service.refresh_all_held_assets(update_history)
    finally:
        db.close()

    clear_price_caches()

    failed = [r.ticker for r in results if not r.success]
    return {"total": len(results), "succeeded": len(results) - len(failed), "failed": failed}


@celery.task(name="portfolio_tracker.tasks.refresh.refresh_market_data_task")
def refresh_market_data_task(update_history: bool = True):
    logger.info("Starting market data refresh.")
    try:
        summary = refresh_held_assets(update_history=update_history)
        logger.info(f"Market data refresh complete: {summary['succeeded']}/{summary['total']} updated.")
        return summary
    except Exception as e:
        logger.error(f"Market data refresh failed: {e}", exc_info=True)
        raise
