from fastapi import APIRouter, HTTPException, Request, Response, status

from tuition.core.config import settings
from tuition.schemas.backup import ImportResult
from tuition.schemas.report import DataStatistics
from tuition.services.backup_service import BackupService
from tuition.services.report_service import export_filename

router = APIRouter()

@router.get("/")
async def download_backup():
    """Full dataset as JSON"""
    backup = await BackupService.export_backup()
    return Response(
        content=backup.model_dump_json(by_alias=True, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("backup")}"'}
    )

@router.post("/import", response_model=ImportResult)
async def import_backup(request: Request):
    """
    Replace all data with a backup file (raw JSON body).

    A malformed backup is rejected with 400 and nothing is changed.
    """
    raw = await request.body()
    if len(raw) > settings.MAX_BACKUP_SIZE:
        raise HTTPException(
            status_code=413,
            detail="Backup file too large"
        )

    result = await BackupService.import_backup(raw)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return result

@router.get("/stats", response_model=DataStatistics)
async def data_statistics():
    return await BackupService.data_statistics()

@router.delete("/data", status_code=status.HTTP_204_NO_CONTENT)
async def clear_all_data():
    """Delete everything. Download a backup first."""
    await BackupService.clear_all_data()
