from fastapi import APIRouter

from concierge.services.broker_pool import get_broker_pool

router = APIRouter()


@router.get("/")
def healthcheck() -> dict[str, str]:
    return {"status": "ok", "brokers": str(len(get_broker_pool()))}
