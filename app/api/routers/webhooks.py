from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import WebhookAck

router = APIRouter()


@router.post("/webhooks/{provider}", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def payment_webhook(
    provider: str,
    request: Request,
    use_cases=Depends(get_use_cases),
) -> WebhookAck:
    # La firma se calcula sobre el cuerpo crudo; no se parsea antes de verificarla
    raw_body = await request.body()
    result = await use_cases["handle_notification"].execute(
        provider=provider,
        raw_body=raw_body,
        headers=request.headers,
    )
    return WebhookAck(**result)
