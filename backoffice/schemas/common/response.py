from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """Common JSON envelope for every endpoint"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None

class PaginatedData(BaseModel, Generic[T]):
    page_index: int
    page_size: int
    count: int
    data: List[T]

def to_page(result: Dict[str, Any], schema: Type[BaseModel]) -> PaginatedData:
    """Wrap a service page dict, validating its rows with ``schema``"""
    return PaginatedData[schema](
        page_index=result["page_index"],
        page_size=result["page_size"],
        count=result["count"],
        data=[schema.model_validate(row) for row in result["data"]]
    )
