"""Identity port (abstract interface).

Session management is an external collaborator: it hands the engine an
already-authenticated principal. The engine only needs to know who is
calling and in which role.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    CUSTOMER = "customer"
    MERCHANT = "merchant"


@dataclass(frozen=True)
class Caller:
    """An authenticated principal.

    For merchants ``actor_id`` is the merchant id; for customers it is the
    customer account id.
    """

    actor_id: str
    role: Role

    @property
    def is_merchant(self) -> bool:
        return self.role == Role.MERCHANT

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    def is_merchant_of(self, merchant_id) -> bool:
        return self.is_merchant and str(self.actor_id) == str(merchant_id)

    def is_customer_of(self, customer_id) -> bool:
        return self.is_customer and customer_id is not None and str(self.actor_id) == str(customer_id)


class IdentityResolver(ABC):
    """Turns request credentials into a Caller."""

    @abstractmethod
    def resolve(self, credentials: str | None) -> Caller:
        """Return the caller for ``credentials`` or raise Unauthenticated."""
        ...

    @abstractmethod
    def issue(self, caller: Caller) -> str:
        """Issue credentials for ``caller`` (used by tooling and tests)."""
        ...
