# routes/data.py ─────────────────────────────────────────────
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from Auth.auth import get_current_claims, require_admin
from Auth.models import TokenClaims
from Dashboard import export
from Dashboard.models import DataPoint, DataPointCreate, DataPointRead
from Notify.mail import notify_new_point
from Storage.database import get_session

logger = logging.getLogger(__name__)
router = APIRouter()


def _all_points(db: Session) -> List[DataPoint]:
    try:
        return list(db.exec(select(DataPoint)).all())
    except SQLAlchemyError as exc:
        logger.exception("Reading data points failed")
        raise HTTPException(500, f"Fout: {exc.__class__.__name__}")


# auth dependencies come first so a rejected request never opens a session
@router.get("/data", response_model=List[DataPointRead], tags=["Data"])
def list_data(
    _: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_session),
):
    return _all_points(db)


@router.post("/data", status_code=201, response_model=DataPointRead, tags=["Data"])
def create_data(
    payload: DataPointCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    claims: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_session),
):
    point = DataPoint.model_validate(payload)
    db.add(point)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storing data point failed")
        raise HTTPException(500, f"Fout: {exc.__class__.__name__}")
    db.refresh(point)

    out = jsonable_encoder(DataPointRead.model_validate(point))
    logger.info("%s added data point %s (%s=%s)", claims.username, out["id"], out["label"], out["value"])

    # run after the response is sent; their outcome never reaches the caller
    background_tasks.add_task(request.app.state.manager.broadcast, out)
    background_tasks.add_task(notify_new_point, out)
    return out


@router.get("/data/summary", tags=["Data"])
def data_summary(
    _: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_session),
):
    return export.summary(export.to_frame(_all_points(db)))


@router.get("/data/export", tags=["Data"])
def export_data(
    _: TokenClaims = Depends(get_current_claims),
    label: Optional[str] = Query(None, description="Only this label"),
    sort: Optional[Literal["date", "value", "label"]] = Query(None),
    order: Literal["asc", "desc"] = Query("asc"),
    db: Session = Depends(get_session),
):
    df = export.filter_sort(
        export.to_frame(_all_points(db)), label=label, sort=sort, descending=order == "desc"
    )
    headers = {"Content-Disposition": 'attachment; filename="data.csv"'}
    return StreamingResponse(
        iter([export.to_csv(df)]),
        media_type="text/csv",
        headers=headers,
    )


@router.websocket("/ws")
async def data_feed(websocket: WebSocket):
    manager = websocket.app.state.manager
    await manager.connect(websocket)
    try:
        while True:
            # clients only listen; anything they send is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
