# --- API Models ---
import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from database import CategoryGroup


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    system_instructions: str = Field(..., alias="systemInstructions")
    model: Optional[str] = None  # configured default model when omitted
    temperature: int = Field(70, ge=0, le=100)
    files: List[str] = []

class GptChatRequest(BaseModel):
    message: str = Field(..., min_length=1)

class ChatResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    message: str


class GptCreate(CamelModel):
    title: str
    name: str
    description: str = ""
    system_instructions: str = Field(..., alias="systemInstructions")
    model: Optional[str] = None
    temperature: int = Field(70, ge=0, le=100)
    category: str
    files: List[str] = []
    creator_name: Optional[str] = Field(None, alias="creatorName")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    gpt_url: Optional[str] = Field(None, alias="gptUrl")
    rating: int = Field(0, ge=0)
    is_featured: bool = Field(False, alias="isFeatured")
    is_new: bool = Field(False, alias="isNew")

class GptUpdate(CamelModel):
    title: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    system_instructions: Optional[str] = Field(None, alias="systemInstructions")
    model: Optional[str] = None
    temperature: Optional[int] = Field(None, ge=0, le=100)
    category: Optional[str] = None
    files: Optional[List[str]] = None
    creator_name: Optional[str] = Field(None, alias="creatorName")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    gpt_url: Optional[str] = Field(None, alias="gptUrl")
    rating: Optional[int] = Field(None, ge=0)
    is_featured: Optional[bool] = Field(None, alias="isFeatured")
    is_new: Optional[bool] = Field(None, alias="isNew")

class Gpt(GptCreate):
    gpt_id: int = Field(..., alias="id")
    model: str
    views: int = 0
    created_at: Optional[datetime.datetime] = Field(None, alias="createdAt")


class UsageLog(BaseModel):
    prompt: str
    response: str
    timestamp: datetime.datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    icon: str = Field(..., min_length=1)
    group: CategoryGroup = CategoryGroup.DIREITO_PROCESSUAL

class Category(CategoryCreate):
    category_id: int = Field(..., alias="id")

    model_config = ConfigDict(populate_by_name=True)

class CategoryGroupListing(BaseModel):
    name: str
    categories: List[Category]


class UploadedDocument(CamelModel):
    path: str
    original_name: str = Field(..., alias="originalName")
    size: int


class LegalAnalysisRequest(BaseModel):
    text: str = Field(..., min_length=1)

class LegalDraftRequest(CamelModel):
    case_details: str = Field(..., alias="caseDetails", min_length=1)
    response_type: str = Field(..., alias="responseType", min_length=1)

class LegalReferencesRequest(BaseModel):
    query: str = Field(..., min_length=1)
