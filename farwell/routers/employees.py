from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from farwell.core.errors import InternalError, NotFound
from farwell.db.models import User
from farwell.schemas import EmployeesOut, UploadOut
from farwell.services.employee_service import EmployeeService, StoredFileMissingError, UploadStorageError
from farwell.services.session_service import current_user

router = APIRouter(tags=["Employee"])
employee_service = EmployeeService()


@router.post("/upload", response_model=UploadOut)
def upload_employees(file: Optional[UploadFile] = File(None), user: User = Depends(current_user)):
    filename = file.filename if file else None
    stream = file.file if file else None
    try:
        rows = employee_service.upload(user, filename, stream)
    except UploadStorageError as exc:
        raise InternalError("File upload failed.", error=str(exc)) from exc
    except StoredFileMissingError as exc:
        raise NotFound("File not found after upload.", path=exc.path) from exc
    return UploadOut(message="File uploaded and processed successfully!", data=rows)


@router.get("/employees", response_model=EmployeesOut)
def get_employees(user: User = Depends(current_user)):
    return EmployeesOut(data=employee_service.get_employees(user))
