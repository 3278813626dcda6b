from app.core.config import settings
from app.db.session import SessionLocal
from app.services.carry_forward import CarryForwardChain, closing_balances
from app.services.sources import SqlTransactionSource

# One chain per process, sharing the process-wide closing balance cache
_chain = CarryForwardChain(
    SqlTransactionSource(SessionLocal),
    cache=closing_balances,
    fetch_timeout=settings.ledger_fetch_timeout_seconds,
    use_cache=settings.ledger_cache_enabled,
)


def ledger_chain() -> CarryForwardChain:
    return _chain
