from dataclasses import dataclass

from ..application.services.authorization_service import AuthorizationGate
from ..application.services.transaction_service import TransactionService
from .config import Settings
from ..domain.ports.persistence import PersistenceGateway
from ..services.credential_service import CredentialService
from ..services.paystack_service import PaystackService
from ..services.token_service import TokenService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    credential_service: CredentialService
    token_service: TokenService
    authorization_gate: AuthorizationGate
    paystack_service: PaystackService
    transaction_service: TransactionService
