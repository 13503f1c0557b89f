from typing import Optional

from pydantic import BaseModel


class ClientIPRead(BaseModel):
    client_ip: str
    request_id: Optional[str] = None
    trusted_proxy: bool


class TrustedProxiesRead(BaseModel):
    trusted_proxies: list[str]
    permissive: bool
