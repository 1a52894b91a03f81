from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from eventify.api.deps import get_backup_service
from eventify.core.security import require_admin
from eventify.models.api_models import BackupStatus, EmailBackupRequest, RestoreReport
from eventify.models.db_models import User
from eventify.services.backup_service import BackupService, backup_filename

router = APIRouter(prefix="/backup")


@router.get("")
async def download_backup(
    admin: User = Depends(require_admin),
    service: BackupService = Depends(get_backup_service),
):
    data = await service.full_backup()
    day = await service.mark_backed_up()
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{backup_filename(day)}"'},
    )


@router.get("/status", response_model=BackupStatus)
async def backup_status(
    admin: User = Depends(require_admin),
    service: BackupService = Depends(get_backup_service),
):
    return await service.status()


@router.post("/restore", response_model=RestoreReport)
async def restore_backup(
    data: Dict[str, Any] = Body(...),
    admin: User = Depends(require_admin),
    service: BackupService = Depends(get_backup_service),
):
    return await service.restore_backup(data)


@router.post("/email")
async def email_backup(
    req: EmailBackupRequest,
    admin: User = Depends(require_admin),
    service: BackupService = Depends(get_backup_service),
):
    delivered = await service.email_backup(req.to)
    return {"success": delivered}
