"""Repository for profile operations."""

from decimal import Decimal
from typing import Optional

from ..models import Profile
from .base import BaseRepository


class ProfileRepository(BaseRepository):
    """Repository for per-user simulation profiles."""

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        """Get the profile for an identity reference."""
        return self.session.query(Profile).filter(Profile.user_id == user_id).first()

    def create_profile(
        self, user_id: str, email: Optional[str], cash_balance: Decimal
    ) -> Profile:
        """Create a profile with its starting balance."""
        profile = Profile(user_id=user_id, email=email, cash_balance=cash_balance)
        self.session.add(profile)
        self.session.flush()
        return profile

    def set_cash_balance(self, profile: Profile, cash_balance: Decimal) -> Profile:
        """Overwrite the cash balance of a profile."""
        profile.cash_balance = cash_balance
        self.session.flush()
        return profile
