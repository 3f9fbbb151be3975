from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from personal_ledger.domain.value_objects import AccountStatus


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Account:
    user_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    currency: str = "USD"
    status: AccountStatus = AccountStatus.ACTIVE
    balance: Decimal = Decimal("0")
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
