from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..models import Transaction, User


class UserRepository(Protocol):
    """Persistence functions related to user accounts."""

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    def create_user(self, name: str, email: str, password_hash: str, role: str) -> User:
        """Insert a user; raises ``DuplicateIdentity`` when the email is taken."""
        ...

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        ...

    def update_user_role(self, user_id: int, role: str) -> User:
        ...


class TransactionRepository(Protocol):
    """Persistence functions related to payment transactions."""

    def create_transaction(self, reference: str, user_id: int, amount: int, status: str) -> Transaction:
        """Insert a transaction; raises ``DuplicateReference`` when the reference is taken."""
        ...

    def get_transaction_by_reference(self, reference: str) -> Optional[Transaction]:
        ...

    def update_transaction(
        self,
        reference: str,
        status: str,
        gateway_payload: Optional[Dict[str, Any]],
    ) -> Transaction:
        """Record a gateway outcome unless the transaction already succeeded."""
        ...

    def list_transactions_for_user(self, user_id: int) -> List[Transaction]:
        ...

    def list_transactions(self) -> List[Transaction]:
        ...


class PersistenceGateway(UserRepository, TransactionRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    def close(self) -> None:
        ...
