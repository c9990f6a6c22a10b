from fastapi import APIRouter
from tuition.api.v1.endpoints import backup, fee_templates, invoices, payments, reports, settings, students

api_router = APIRouter()

api_router.include_router(students.router, prefix="/students", tags=["students"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(fee_templates.router, prefix="/fee-templates", tags=["fee templates"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(backup.router, prefix="/backup", tags=["backup"])
