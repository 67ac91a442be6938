from typing import Any, Optional
from pydantic import BaseModel

class ResponseModel(BaseModel):
    code: int = 200
    message: str = "success"
    data: Optional[Any] = None

    @staticmethod
    def success(data: Any = None):
        return {"code": 200, "message": "success", "data": data}

    @staticmethod
    def fail(code: int = 400, message: str = "error", data: Any = None):
        return {"code": code, "message": message, "data": data}

    @staticmethod
    def page(page: Any, items: Optional[list] = None):
        """Wrap a Page; pass items to replace page.items (e.g. already serialized rows)."""
        return ResponseModel.success(data={
            "items": page.items if items is None else items,
            "total": page.total,
            "per_page": page.per_page,
            "current_page": page.current_page,
            "last_page": page.last_page,
            "from": page.from_index,
            "to": page.to_index,
        })
