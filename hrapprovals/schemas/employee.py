"""
Employee schemas
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict


class EmployeeBrief(BaseModel):
    """Nested employee summary used in request responses"""
    id: int
    emp_code: str
    name: str
    role: str
    department_id: Optional[int] = None
    manager_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
