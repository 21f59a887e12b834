from pydantic import BaseModel
from typing import Optional

from schoolhub.db.models import Resource

class ResourceResponse(Resource):
    id: str
    class_name: Optional[str] = None
    class_subject: Optional[str] = None

class SignedUrlResponse(BaseModel):
    resource_id: str
    signed_url: str
    expires_in: int
