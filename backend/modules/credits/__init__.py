"""
Credit ledger module.

Debits credits atomically before a billable operation and refunds them
if the operation fails or times out.

Public API:
- ICreditLedger: Interface for charging around an operation
- ICreditStore: Interface for the atomic balance primitives
- CreditLedger: Ledger implementation
- InMemoryCreditStore / SupabaseCreditStore: Store implementations
"""

from .interfaces import ICreditLedger, ICreditStore, IOperationAuditLog
from .models import (
    TransactionType,
    CreditBalance,
    DebitResult,
    RefundResult,
    LedgerEntry,
    AuditOutcome,
    AuditEntry,
    ChargeResult,
    BalanceResponse,
)
from .exceptions import (
    CreditsError,
    InsufficientCreditsError,
    InvalidCostError,
    OperationTimeoutError,
)
from .store import InMemoryCreditStore, SupabaseCreditStore
from .audit import InMemoryAuditLog, SupabaseAuditLog
from .service import (
    CreditLedger,
    DEFAULT_TIMEOUT_SECONDS,
    generate_job_id,
    describe_operation,
)

__all__ = [
    # Interfaces
    "ICreditLedger",
    "ICreditStore",
    "IOperationAuditLog",
    # Models
    "TransactionType",
    "CreditBalance",
    "DebitResult",
    "RefundResult",
    "LedgerEntry",
    "AuditOutcome",
    "AuditEntry",
    "ChargeResult",
    "BalanceResponse",
    # Exceptions
    "CreditsError",
    "InsufficientCreditsError",
    "InvalidCostError",
    "OperationTimeoutError",
    # Stores
    "InMemoryCreditStore",
    "SupabaseCreditStore",
    "InMemoryAuditLog",
    "SupabaseAuditLog",
    # Service
    "CreditLedger",
    "DEFAULT_TIMEOUT_SECONDS",
    "generate_job_id",
    "describe_operation",
]
