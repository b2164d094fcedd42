from dataclasses import dataclass, field


@dataclass(frozen=True)
class CashierSession:
    """Who is ringing up the sale, as established at login."""

    cashier_id: str
    cashier_name: str
    is_master: bool = False
    permissions: frozenset = field(default_factory=frozenset)

    def can_access(self, page: str) -> bool:
        return self.is_master or page in self.permissions
