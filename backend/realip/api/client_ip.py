from fastapi import APIRouter, Request

from realip.core.ip import client_ip, parse_remote_ip
from realip.core.trusted_proxies import get_trusted_proxy_set, is_trusted_proxy, trusted_proxies
from realip.schemas.client_ip import ClientIPRead, TrustedProxiesRead


router = APIRouter(tags=["client-ip"])


@router.get("/client-ip", response_model=ClientIPRead)
def read_client_ip(request: Request):
    peer = parse_remote_ip(request.client.host if request.client else None)
    return ClientIPRead(
        client_ip=client_ip(request),
        request_id=getattr(request.state, "request_id", None),
        trusted_proxy=peer is not None and is_trusted_proxy(peer),
    )


@router.get("/trusted-proxies", response_model=TrustedProxiesRead)
def read_trusted_proxies():
    return TrustedProxiesRead(
        trusted_proxies=trusted_proxies(),
        permissive=get_trusted_proxy_set().permissive,
    )
