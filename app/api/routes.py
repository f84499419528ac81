"""
FastAPI routes for the FCM admin token console.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import (
    APIRouter,
    Cookie,
    Depends,
    File,
    Response,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.websockets import WebSocketState

from app.clients.instance_id import (
    MembershipError,
    MembershipInputError,
    MembershipProviderRejected,
    normalize_membership_input,
)
from app.dependencies import (
    get_admin_session_store,
    get_app_settings,
    get_credential_store,
    get_firebase_web_config,
    get_instance_id_client,
    get_notification_hub,
    get_token_issuer,
)
from app.schemas import (
    AdminTokenResponse,
    AdminTokenStatus,
    ErrorResponse,
    FcmMessage,
    FirebaseWebConfig,
    ServiceAccountUploadResponse,
    TopicMembershipRequest,
    TopicMembershipResponse,
)
from app.services.credential_store import (
    CredentialValidationError,
    MissingCredentialFields,
)
from app.services.token_issuer import (
    InvalidGrantError,
    IssuanceError,
    NoCredentialError,
    utc_now,
)
from app.services.token_lifecycle import AdminTokenSession

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_COOKIE = "fcm_admin_session"


def _errors(*statuses: HTTPStatus) -> dict:
    return {status: {"model": ErrorResponse} for status in statuses}


def _error(response: Response, status: HTTPStatus, message: str, **extra: Any) -> dict:
    response.status_code = status
    return ErrorResponse(error=message, **extra).model_dump(exclude_none=True)


def get_admin_session(
    response: Response,
    store: Annotated[Any, Depends(get_admin_session_store)],
    session_id: Annotated[Optional[str], Cookie(alias=SESSION_COOKIE)] = None,
) -> AdminTokenSession:
    """Resolve the caller's session from its cookie, starting a new one if needed."""
    session = store.get_or_create(session_id)
    if session.session_id != session_id:
        response.set_cookie(
            SESSION_COOKIE,
            session.session_id,
            httponly=True,
            samesite="strict",
        )
    return session


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/firebase-config", status_code=HTTPStatus.OK)
async def firebase_config(
    config: Annotated[FirebaseWebConfig, Depends(get_firebase_web_config)],
) -> dict:
    """Configuration the browser SDK needs to obtain a device registration token."""
    return config.model_dump(by_alias=True, exclude_none=True)


@router.post(
    "/service-account",
    status_code=HTTPStatus.OK,
    response_model=None,
    responses={
        HTTPStatus.OK: {"model": ServiceAccountUploadResponse},
        **_errors(HTTPStatus.BAD_REQUEST, HTTPStatus.REQUEST_ENTITY_TOO_LARGE),
    },
)
async def upload_service_account(
    response: Response,
    session: Annotated[AdminTokenSession, Depends(get_admin_session)],
    store: Annotated[Any, Depends(get_credential_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
    service_account: Annotated[
        Optional[UploadFile], File(alias="serviceAccount")
    ] = None,
) -> dict:
    """Validate and store an uploaded service-account key file."""
    if service_account is None:
        return _error(response, HTTPStatus.BAD_REQUEST, "No file uploaded")

    limit = settings.credentials.max_upload_bytes
    try:
        raw = await service_account.read(limit + 1)
    finally:
        await service_account.close()
    if len(raw) > limit:
        return _error(
            response,
            HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
            f"Service account file exceeds {limit} bytes",
        )

    try:
        credential = await asyncio.to_thread(store.put, raw)
    except MissingCredentialFields as exc:
        logger.info("Rejected service account upload: %s", exc.message)
        return _error(
            response, HTTPStatus.BAD_REQUEST, exc.message, missing_fields=exc.fields
        )
    except CredentialValidationError as exc:
        logger.info("Rejected service account upload: %s", exc.message)
        return _error(response, HTTPStatus.BAD_REQUEST, exc.message)

    session.mark_credential_uploaded()
    return ServiceAccountUploadResponse(
        project_id=credential.project_id,
        client_email=credential.client_email,
    ).model_dump()


@router.post(
    "/admin-token",
    status_code=HTTPStatus.OK,
    response_model=None,
    responses={
        HTTPStatus.OK: {"model": AdminTokenResponse},
        **_errors(HTTPStatus.BAD_REQUEST, HTTPStatus.INTERNAL_SERVER_ERROR),
    },
)
async def generate_admin_token(
    response: Response,
    session: Annotated[AdminTokenSession, Depends(get_admin_session)],
    issuer: Annotated[Any, Depends(get_token_issuer)],
) -> dict:
    """Mint a new admin access token, replacing the one tracked for the session."""
    try:
        token = await session.refresh(issuer)
    except (NoCredentialError, InvalidGrantError) as exc:
        return _error(response, HTTPStatus.BAD_REQUEST, str(exc))
    except IssuanceError as exc:
        return _error(
            response,
            HTTPStatus.INTERNAL_SERVER_ERROR,
            str(exc) or "Failed to generate admin token",
        )

    return AdminTokenResponse(
        access_token=token.access_token,
        expires_in=token.expires_in,
        expires_at=token.expires_at,
    ).model_dump(mode="json")


@router.get("/admin-token", status_code=HTTPStatus.OK, response_model=AdminTokenStatus)
async def admin_token_status(
    session: Annotated[AdminTokenSession, Depends(get_admin_session)],
) -> AdminTokenStatus:
    """Report the session's token state and time left."""
    return AdminTokenStatus.model_validate(session.status(utc_now()))


@router.delete("/admin-token", status_code=HTTPStatus.OK, response_model=AdminTokenStatus)
async def reset_admin_token(
    session: Annotated[AdminTokenSession, Depends(get_admin_session)],
) -> AdminTokenStatus:
    """Forget the session's token and uploaded-key flag."""
    session.reset()
    return AdminTokenStatus.model_validate(session.status(utc_now()))


async def _change_membership(
    action: str,
    payload: TopicMembershipRequest,
    response: Response,
    client: Any,
) -> dict:
    operation = client.subscribe if action == "subscribe" else client.unsubscribe
    try:
        await operation(payload.token, payload.topic)
    except MembershipInputError as exc:
        return _error(response, HTTPStatus.BAD_REQUEST, str(exc))
    except MembershipProviderRejected as exc:
        return _error(
            response,
            HTTPStatus.BAD_GATEWAY,
            f"Failed to {action} topic: service returned {exc.status_code}",
        )
    except MembershipError:
        return _error(
            response,
            HTTPStatus.BAD_GATEWAY,
            f"Failed to {action} topic: service unavailable",
        )

    _, topic = normalize_membership_input(payload.token, payload.topic)
    verb = "subscribed to" if action == "subscribe" else "unsubscribed from"
    return TopicMembershipResponse(
        success=True, message=f"Successfully {verb} topic: {topic}"
    ).model_dump()


_TOPIC_RESPONSES = {
    HTTPStatus.OK: {"model": TopicMembershipResponse},
    **_errors(HTTPStatus.BAD_REQUEST, HTTPStatus.BAD_GATEWAY),
}


@router.post(
    "/topics/subscribe",
    status_code=HTTPStatus.OK,
    response_model=None,
    responses=_TOPIC_RESPONSES,
)
async def subscribe_topic(
    payload: TopicMembershipRequest,
    response: Response,
    client: Annotated[Any, Depends(get_instance_id_client)],
) -> dict:
    """Add a device registration token to an FCM topic."""
    return await _change_membership("subscribe", payload, response, client)


@router.post(
    "/topics/unsubscribe",
    status_code=HTTPStatus.OK,
    response_model=None,
    responses=_TOPIC_RESPONSES,
)
async def unsubscribe_topic(
    payload: TopicMembershipRequest,
    response: Response,
    client: Annotated[Any, Depends(get_instance_id_client)],
) -> dict:
    """Remove a device registration token from an FCM topic."""
    return await _change_membership("unsubscribe", payload, response, client)


@router.post("/notifications/{device_token}", status_code=HTTPStatus.ACCEPTED)
async def relay_notification(
    device_token: str,
    message: FcmMessage,
    hub: Annotated[Any, Depends(get_notification_hub)],
) -> dict:
    """Hand a delivered FCM message to the device's foreground consumer, if any."""
    delivered = hub.publish(device_token, message.to_payload())
    return {"delivered": delivered}


@router.websocket("/notifications/{device_token}/ws")
async def notification_stream(
    websocket: WebSocket,
    device_token: str,
    hub: Annotated[Any, Depends(get_notification_hub)],
) -> None:
    """Stream foreground notifications for one device to a single consumer."""
    # Registered before the handshake completes.
    channel = hub.subscribe(device_token)
    watcher: asyncio.Task | None = None

    async def _watch_disconnect() -> None:
        # Inbound frames of any kind are ignored; only the disconnect matters.
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
        except RuntimeError as exc:
            logger.debug("Notification stream for %s stopped reading: %s", device_token, exc)
        finally:
            channel.close()

    try:
        await websocket.accept()
        watcher = asyncio.create_task(_watch_disconnect())
        async for payload in channel:
            await websocket.send_json(payload.model_dump())
    except WebSocketDisconnect:
        pass
    finally:
        if watcher is not None:
            watcher.cancel()
        hub.unsubscribe(device_token, channel)
        if (
            websocket.application_state == WebSocketState.CONNECTED
            and websocket.client_state == WebSocketState.CONNECTED
        ):
            await websocket.close()


__all__ = ["router", "SESSION_COOKIE", "get_admin_session"]
