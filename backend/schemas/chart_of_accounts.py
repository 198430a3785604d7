from pydantic import BaseModel, Field
from typing import Optional, List

class CoaCategoryBase(BaseModel):
    parent_id: Optional[int] = None
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    category_type: str

class CoaCategoryCreate(CoaCategoryBase):
    pass

class CoaCategoryUpdate(CoaCategoryBase):
    pass

class CoaCategory(CoaCategoryBase):
    id: int
    level: int

    class Config:
        from_attributes = True

class CoaCategoryNode(CoaCategory):
    children: List['CoaCategoryNode'] = []
CoaCategoryNode.model_rebuild()
