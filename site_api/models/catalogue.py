from pydantic import BaseModel
from typing import Any


class CatalogueEmailRequest(BaseModel):
    email: Any = None
