from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from pricecam.confidence.confidence import FrameSource
from pricecam.conversion.engine import ConversionEngine, convert
from pricecam.core.context import AppContext
from pricecam.core.errors import (
    ConversionError,
    RecognitionError,
    SettingsValidationError,
    StorageError,
    user_message,
)
from pricecam.models import ConversionRecord, ConversionResult, CurrencySettings
from pricecam.schemas import (
    ConversionResultOut,
    ConvertRequest,
    ConvertResponse,
    CurrencySettingsIn,
    FrameResponse,
    SaveConversionRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()

_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _result_out(result: ConversionResult) -> ConversionResultOut:
    return ConversionResultOut(
        id=result.id,
        detected_price=result.detected_price,
        converted_amount=result.converted_amount,
        source_currency=result.source_currency,
        target_currency=result.target_currency,
        exchange_rate=result.exchange_rate,
        confidence=result.confidence,
        timestamp=result.timestamp,
        formatted_amount=ConversionEngine.format_result(result.converted_amount, result.target_currency),
    )


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

@router.post("/frames", response_model=FrameResponse)
async def process_frame(
    context: AppContext = Depends(get_context),
    file: UploadFile = File(...),
    source: FrameSource | None = None,
) -> FrameResponse:
    content_type = file.content_type or "image/jpeg"
    if content_type not in _IMAGE_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported content_type={content_type!r}")

    image = await file.read()
    processor = context.frame_processor
    if not processor.can_accept():
        return FrameResponse(status="skipped")

    try:
        result = await processor.process_frame(image, source)
    except RecognitionError as exc:
        raise HTTPException(status_code=502, detail=user_message(exc)) from exc
    except ConversionError as exc:
        raise HTTPException(status_code=422, detail=user_message(exc)) from exc

    if result is None:
        return FrameResponse(status="no_price")
    return FrameResponse(status="processed", result=_result_out(result))


@router.post("/convert", response_model=ConvertResponse)
async def convert_price(body: ConvertRequest) -> ConvertResponse:
    try:
        amount = convert(body.price, body.rate)
    except ConversionError as exc:
        raise HTTPException(status_code=422, detail=user_message(exc)) from exc
    return ConvertResponse(price=body.price, rate=body.rate, converted_amount=amount)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@router.get("/settings", response_model=CurrencySettings)
async def get_settings(context: AppContext = Depends(get_context)) -> CurrencySettings:
    current = context.settings_store.current()
    if current is None:
        raise HTTPException(status_code=404, detail="Currency settings not configured")
    return current


@router.put("/settings", response_model=CurrencySettings)
async def put_settings(
    body: CurrencySettingsIn,
    context: AppContext = Depends(get_context),
) -> CurrencySettings:
    try:
        return await context.settings_store.asave(CurrencySettings(**body.model_dump()))
    except SettingsValidationError as exc:
        raise HTTPException(status_code=422, detail=user_message(exc)) from exc
    except StorageError as exc:
        logger.exception("settings_save_failed")
        raise HTTPException(status_code=500, detail=user_message(exc)) from exc


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@router.get("/history", response_model=list[ConversionRecord])
async def get_history(context: AppContext = Depends(get_context)) -> list[ConversionRecord]:
    return await context.history_store.aload_history()


@router.post("/history", response_model=ConversionRecord, status_code=201)
async def save_conversion(
    body: SaveConversionRequest,
    context: AppContext = Depends(get_context),
) -> ConversionRecord:
    fields = body.model_dump(exclude_none=True)
    record = ConversionRecord(
        original_price=fields.pop("detected_price"),
        foreign_currency=fields.pop("source_currency"),
        local_currency=fields.pop("target_currency"),
        **fields,
    )
    try:
        await context.history_store.aadd_record(record)
    except StorageError as exc:
        logger.exception("history_save_failed")
        raise HTTPException(status_code=500, detail=user_message(exc)) from exc
    return record


@router.delete("/history", status_code=204)
async def clear_history(context: AppContext = Depends(get_context)) -> Response:
    try:
        await context.history_store.aclear_history()
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=user_message(exc)) from exc
    return Response(status_code=204)
