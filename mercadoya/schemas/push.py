from pydantic import BaseModel, ConfigDict, Field


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionCreate(BaseModel):
    endpoint: str = Field(..., min_length=1)
    keys: PushKeys


class PushUnsubscribe(BaseModel):
    endpoint: str


class VapidPublicKeyResponse(BaseModel):
    public_key: str = Field(..., alias="publicKey")

    model_config = ConfigDict(populate_by_name=True)
