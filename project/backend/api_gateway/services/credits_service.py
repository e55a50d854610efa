"""
Credits ledger service.

Reads and debits generation credits. Purchases happen through the payment
processor's hosted checkout; only the package catalogue is served here.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from api_gateway.dependencies import ANON_PREFIX
from shared.config import Settings
from shared.database import CREDIT_TRANSACTIONS_TABLE, USERS_TABLE, DatabaseClient
from shared.errors import InsufficientCreditsError
from shared.logging import get_logger
from shared.models.credits import CreditPackage, CreditTransaction, UserProfile

logger = get_logger("api_gateway.credits")

PAYMENT_PROVIDER = "polar"


def get_credit_packages(settings: Settings) -> List[CreditPackage]:
    """Credit packages with product ids for the active payment server."""
    server = settings.payment_server

    def product_id(credits: int) -> str:
        return getattr(settings, f"polar_{server}_product_id_{credits}_credits")

    return [
        CreditPackage(
            id=product_id(20),
            name="Starter Pack",
            description="20 character generations",
            price=500,
            credits=20,
        ),
        CreditPackage(
            id=product_id(50),
            name="Popular Pack",
            description="50 character generations",
            price=1000,
            credits=50,
            popular=True,
        ),
        CreditPackage(
            id=product_id(100),
            name="Pro Pack",
            description="100 character generations",
            price=1500,
            credits=100,
        ),
    ]


async def get_or_create_profile(db: DatabaseClient, identity_key: str, settings: Settings) -> UserProfile:
    """
    Load the credit profile, creating it with the free starting balance.

    Raises:
        PersistenceError: If the read or insert fails
    """
    result = await db.table(USERS_TABLE).select("*").eq("id", identity_key).execute()
    if result.data:
        return UserProfile.model_validate(result.data[0])

    profile = UserProfile(
        id=identity_key,
        credits=settings.free_starting_credits,
        plan="free",
        images_created=0,
        is_anonymous=identity_key.startswith(ANON_PREFIX),
    )
    await db.table(USERS_TABLE).insert(profile.model_dump()).execute()
    logger.info(
        "Created credit profile",
        extra={"identity_key": identity_key, "credits": profile.credits}
    )
    return profile


async def ensure_can_generate(db: DatabaseClient, identity_key: str, settings: Settings) -> UserProfile:
    """
    Reject generation when a free-plan profile has no credits left.

    Raises:
        InsufficientCreditsError: If plan is free and credits <= 0
    """
    profile = await get_or_create_profile(db, identity_key, settings)
    if profile.is_metered and profile.credits <= 0:
        logger.info("Generation blocked: no credits", extra={"identity_key": identity_key})
        raise InsufficientCreditsError("Insufficient credits")
    return profile


async def debit_generation(
    db: DatabaseClient,
    identity_key: str,
    settings: Settings,
) -> Optional[CreditTransaction]:
    """
    Charge one credit for a generation and log a usage transaction.

    Paid plans are not decremented but still count images_created. Failures
    are logged and not raised; the character already exists at this point.
    """
    try:
        profile = await get_or_create_profile(db, identity_key, settings)
        credits = profile.credits - 1 if profile.is_metered else profile.credits
        await db.table(USERS_TABLE).update({
            "credits": credits,
            "images_created": profile.images_created + 1,
        }).eq("id", identity_key).execute()

        transaction = CreditTransaction(
            id=str(uuid.uuid4()),
            user_id=identity_key,
            amount=-1 if profile.is_metered else 0,
            type="usage",
            description="Character generation",
            balance_after=credits,
            created_at=datetime.now(timezone.utc),
        )
        await db.table(CREDIT_TRANSACTIONS_TABLE).insert(transaction.model_dump(mode="json")).execute()
        logger.info(
            "Debited generation credit",
            extra={"identity_key": identity_key, "balance_after": credits}
        )
        return transaction
    except Exception as e:
        logger.error(
            "Failed to debit generation credit",
            exc_info=e,
            extra={"identity_key": identity_key}
        )
        return None
