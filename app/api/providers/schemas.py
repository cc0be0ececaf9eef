from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProviderBase(BaseModel):
    company_name: str
    contact_email: Optional[str] = None


class ProviderCreate(ProviderBase):
    pass


class Provider(ProviderBase):
    id: int

    model_config = ConfigDict(from_attributes=True)
