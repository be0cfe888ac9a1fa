import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AccountAccessError, EmptyInputError, PersistenceError
from app.models.user import User
from app.schemas.trade import ImportResponse, ImportRowError
from app.services.importer.csv_import import import_trade_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["import"])


@router.post("/csv", response_model=ImportResponse)
async def import_csv(
    file: UploadFile = File(...),
    account_id: int = Form(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"File too large (max {settings.MAX_UPLOAD_SIZE_MB}MB)")

    text = content.decode("utf-8-sig", errors="replace")

    try:
        result = import_trade_csv(db, text, account_id, user.id)
    except AccountAccessError:
        raise HTTPException(status_code=403, detail="Invalid account")
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not result.ok:
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Validation errors in CSV data",
                "errors": [ImportRowError(row=e.row, message=e.message).model_dump() for e in result.errors],
            },
        )

    return ImportResponse(
        inserted_count=result.inserted_count,
        message=f"Successfully imported {result.inserted_count} trades",
    )
