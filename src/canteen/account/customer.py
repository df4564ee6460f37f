"""Customer aggregate: the account a walk-up customer orders with.

Its profile is the only source of the contact snapshot copied onto orders;
callers never supply contact details themselves.
"""

import re
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from canteen.account.events import CustomerProfileUpdated, CustomerRegistered
from canteen.domain import canteen

MOBILE_PHONE_PATTERN = re.compile(r"^1[3-9]\d{9}$")

_UNSET = object()


@canteen.aggregate
class Customer:
    nickname = String(required=True, max_length=50)
    phone = String(max_length=11)
    avatar = String(max_length=500)
    registered_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def phone_must_be_a_mobile_number(self):
        if self.phone and not MOBILE_PHONE_PATTERN.match(self.phone):
            raise ValidationError({"phone": [f"Invalid mobile phone number: {self.phone}"]})

    @invariant.post
    def nickname_must_not_be_blank(self):
        if self.nickname is not None and not self.nickname.strip():
            raise ValidationError({"nickname": ["Nickname cannot be blank"]})

    @classmethod
    def register(cls, nickname, phone=None, avatar=None):
        now = datetime.now(UTC)
        customer = cls(
            nickname=nickname.strip() if nickname else nickname,
            phone=phone or None,
            avatar=avatar or None,
            registered_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                nickname=customer.nickname,
                phone=customer.phone,
                registered_at=now,
            )
        )
        return customer

    def update_profile(self, nickname=_UNSET, phone=_UNSET, avatar=_UNSET):
        with atomic_change(self):
            if nickname is not _UNSET:
                self.nickname = nickname.strip() if nickname else nickname
            if phone is not _UNSET:
                self.phone = phone or None
            if avatar is not _UNSET:
                self.avatar = avatar or None
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CustomerProfileUpdated(
                customer_id=str(self.id),
                nickname=self.nickname,
                phone=self.phone,
                avatar=self.avatar,
            )
        )

    def contact_snapshot(self) -> dict:
        return {"nickname": self.nickname, "phone": self.phone, "avatar": self.avatar}
