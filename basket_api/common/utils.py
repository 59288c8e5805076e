from datetime import datetime,timezone
from typing import Any, Dict, Optional, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

def now() -> datetime:
    return datetime.now(timezone.utc)


def build_success(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": True, **data}

def build_error(code: Union[str, int] = "UNKNOWN_ERROR",
                details: Optional[Any] = None,
                request_id: Optional[str] = None) -> Dict[str, Any]:

    message = details.get("message") if isinstance(details, dict) else None
    return {
        "success": False,
        "status": "error",
        "message": message,
        "data": None,
        "error": {"code": code, "details": details},
        "request_id": request_id,
    }

def json_ok(content: Dict[str, Any], status_code: int = 200,headers = None) -> JSONResponse:
    return JSONResponse(jsonable_encoder(content), status_code=status_code,headers=headers)

def json_error(content: Dict[str, Any], status_code: int = 500, headers=None) -> JSONResponse:
    return JSONResponse(jsonable_encoder(content), status_code=status_code, headers=headers)

def success_response(data: Dict[str, Any], status_code: int = 200,headers: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = build_success(data)
    return json_ok(content, status_code=status_code,headers=headers)
