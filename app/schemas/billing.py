from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auth import UserOut


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    checkout_url: str = Field(..., alias="checkoutUrl")


class UpgradeResponse(BaseModel):
    user: UserOut
