"""
Credit package routes.
"""

from fastapi import APIRouter, Depends

from api_gateway.services.credits_service import PAYMENT_PROVIDER, get_credit_packages
from shared.config import Settings, get_settings

router = APIRouter()


@router.get("/credits/packages")
async def list_credit_packages(settings: Settings = Depends(get_settings)):
    """
    Credit packages available through hosted checkout.
    """
    packages = get_credit_packages(settings)
    return {
        "packages": [package.model_dump() for package in packages],
        "provider": PAYMENT_PROVIDER,
    }
