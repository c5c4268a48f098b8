import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.exceptions import LedgerTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

async def run_ledger_transaction(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    timeout: Optional[float] = None,
) -> T:
    """
    Run a stock-mutating operation as one all-or-nothing unit of work.

    The operation flushes but never commits; this helper commits on success and
    rolls back on any failure, including the transaction timeout.
    """
    limit = timeout if timeout is not None else settings.LEDGER_TRANSACTION_TIMEOUT_SECONDS
    try:
        result = await asyncio.wait_for(operation(), timeout=limit)
        await db.commit()
        return result
    except asyncio.TimeoutError:
        await db.rollback()
        logger.warning(f"⏱️ Ledger transaction exceeded {limit}s and was rolled back")
        raise LedgerTimeoutError()
    except Exception:
        await db.rollback()
        raise
